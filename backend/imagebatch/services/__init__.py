"""Service layer."""

from .ingestion import accepted_mime, is_accepted, load_sources
from .pipeline_service import PipelineService

__all__ = ["PipelineService", "accepted_mime", "is_accepted", "load_sources"]
