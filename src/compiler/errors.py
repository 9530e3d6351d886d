"""errors raised while discovering, building and reading projects"""

from pathlib import Path
from typing import List, Optional

from src.models.contracts import ProjectType


class CrawlerError(Exception):
    """base class for per-root and per-repository failures"""


class ParseConfigError(CrawlerError):
    """build tool descriptor is missing or malformed"""


class ProcessError(CrawlerError):
    """external process exited non-zero"""

    def __init__(self, stderr: str, command: Optional[List[str]] = None, cwd: Optional[Path] = None):
        self.stderr = stderr
        self.command = command or []
        self.cwd = cwd
        super().__init__(stderr)


class ResolveDependenciesError(ProcessError):
    """dependency installation or foundry initialization failed"""


class ProjectCompileError(ProcessError):
    """compiler build failed"""


class CloneError(ProcessError):
    """git clone failed"""


class UnsupportedProjectTypeError(CrawlerError):
    """project type is not recognized or not implemented"""

    def __init__(self, project_type: ProjectType):
        self.project_type = project_type
        super().__init__(f"Unsupported project type: {project_type.value}")


class CacheReadError(CrawlerError):
    """build cache file is missing or unreadable"""
