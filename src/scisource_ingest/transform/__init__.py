from .xslt import STYLESHEETS, MarkupTransformer, TransformError

__all__ = ["STYLESHEETS", "MarkupTransformer", "TransformError"]
