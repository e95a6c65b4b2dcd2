from .errors import ArticleOutcome, IngestReport, run_guarded

__all__ = ["ArticleOutcome", "IngestReport", "run_guarded"]
