from .orchestrator import deduplicate, run_pipelines
from .processor import PaperProcessor

__all__ = ["PaperProcessor", "deduplicate", "run_pipelines"]
