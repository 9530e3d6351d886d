"""utilities for the contract crawler"""
from .logging import PipelineLogger, LogCategory
from .correlation import RepositoryRun, repository_run, get_run_id

__all__ = [
    "PipelineLogger",
    "LogCategory",
    "RepositoryRun",
    "repository_run",
    "get_run_id",
]
