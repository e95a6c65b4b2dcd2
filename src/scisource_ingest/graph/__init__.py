from .models import (
    AnchorPoint,
    Annotation,
    Article,
    GraphRecord,
    IdentifierAlreadyAssignedError,
    PublicationPhase,
)
from .snapshot import ArticleSnapshot, SnapshotPersistenceError
from .schema import ResolvedSchema, SchemaResolutionError, build_claims, resolve_schema
from .publisher import (
    CompositePublicationError,
    GraphPublisher,
    PublicationError,
    ReconciliationError,
)

__all__ = [
    "AnchorPoint",
    "Annotation",
    "Article",
    "ArticleSnapshot",
    "CompositePublicationError",
    "GraphPublisher",
    "GraphRecord",
    "IdentifierAlreadyAssignedError",
    "PublicationError",
    "PublicationPhase",
    "ReconciliationError",
    "ResolvedSchema",
    "SchemaResolutionError",
    "SnapshotPersistenceError",
    "build_claims",
    "resolve_schema",
]
