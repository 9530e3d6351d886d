"""per-repository run tracking

every repository extraction runs inside a RepositoryRun; build events, json
logs and log lines emitted while it is active (including from resolver
worker threads started with submit_in_run) carry its run id.
"""
import logging
import uuid
from concurrent.futures import Executor, Future
from contextlib import contextmanager
from contextvars import ContextVar, copy_context
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, Union

_current_run: ContextVar[Optional["RepositoryRun"]] = ContextVar("current_run", default=None)


@dataclass(frozen=True)
class RepositoryRun:
    run_id: str
    repository: str
    started_at: datetime = field(default_factory=datetime.now)

    def elapsed_seconds(self) -> float:
        return (datetime.now() - self.started_at).total_seconds()


def current_run() -> Optional[RepositoryRun]:
    return _current_run.get()


def get_run_id() -> Optional[str]:
    run = _current_run.get()
    return run.run_id if run is not None else None


@contextmanager
def repository_run(repository: Union[str, Path], run_id: Optional[str] = None) -> Iterator[RepositoryRun]:
    """
    Mark everything inside the block as belonging to one repository.

    Runs nest; leaving the block restores the enclosing run (or none).
    """
    run = RepositoryRun(run_id=run_id or uuid.uuid4().hex[:8], repository=str(repository))
    token = _current_run.set(run)
    try:
        yield run
    finally:
        _current_run.reset(token)


def submit_in_run(executor: Executor, fn: Callable[..., Any], *args: Any) -> Future:
    """executor.submit, with the worker running under the caller's repository run"""
    return executor.submit(copy_context().run, fn, *args)


class RunIdFilter(logging.Filter):
    """adds run_id and repository attributes to every record ("-" outside a run)"""

    def filter(self, record: logging.LogRecord) -> bool:
        run = _current_run.get()
        record.run_id = run.run_id if run is not None else "-"
        record.repository = run.repository if run is not None else "-"
        return True
