"""Batch conversion of registry items."""

from .scheduler import BatchRunSummary, BatchScheduler, partition

__all__ = ["BatchRunSummary", "BatchScheduler", "partition"]
