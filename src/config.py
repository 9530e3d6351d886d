import os
import warnings
from pathlib import Path
from typing import Optional, List
from dataclasses import dataclass, field


def safe_int(value: Optional[str], default: int, min_val: Optional[int] = None, max_val: Optional[int] = None) -> int:
    if value is None:
        return default
    try:
        result = int(value)
        if min_val is not None and result < min_val:
            warnings.warn(
                f"Value {result} is below minimum {min_val}, using default {default}",
                RuntimeWarning,
                stacklevel=2
            )
            return default
        if max_val is not None and result > max_val:
            warnings.warn(
                f"Value {result} exceeds maximum {max_val}, using default {default}",
                RuntimeWarning,
                stacklevel=2
            )
            return default
        return result
    except (ValueError, TypeError):
        return default


def safe_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class CrawlerConfig:
    PROJECT_ROOT: Path = field(default_factory=lambda: Path(
        os.getenv("C4_CRAWLER_ROOT")
        or Path(__file__).parent.parent.absolute()
    ))

    @property
    def DATA_DIR(self) -> Path:
        return self.PROJECT_ROOT / "data"

    @property
    def LOGS_DIR(self) -> Path:
        return self.DATA_DIR / "logs"

    @property
    def LOGS_RAW_DIR(self) -> Path:
        return self.LOGS_DIR / "raw"

    @property
    def LOGS_DB_PATH(self) -> Path:
        return self.LOGS_DIR / "builds.db"

    @property
    def LOCKS_DIR(self) -> Path:
        return self.DATA_DIR / "locks"

    @property
    def CONTESTS_DIR(self) -> Path:
        explicit = os.getenv("CONTESTS_DIR")
        if explicit:
            return Path(explicit)
        return self.PROJECT_ROOT / "contests"

    # monorepos nest build roots at most two levels deep
    DISCOVERY_MAX_DEPTH: int = safe_int(os.getenv("DISCOVERY_MAX_DEPTH"), default=2, min_val=0, max_val=8)
    IGNORED_DIRS: List[str] = field(default_factory=lambda: ["lib", "libs", "node_modules"])

    ARTIFACT_WORKERS: int = safe_int(os.getenv("ARTIFACT_WORKERS"), default=os.cpu_count() or 1, min_val=1, max_val=256)

    FORGE_BIN: str = os.getenv("FORGE_BIN", "forge")
    NPM_BIN: str = os.getenv("NPM_BIN", "npm")
    NPX_BIN: str = os.getenv("NPX_BIN", "npx")
    GIT_BIN: str = os.getenv("GIT_BIN", "git")
    FOUNDRY_COMPAT_PACKAGE: str = "@nomicfoundation/hardhat-foundry"

    ENABLE_LOGGING: bool = safe_bool(os.getenv("ENABLE_LOGGING"), True)
    LOG_TO_SQLITE: bool = safe_bool(os.getenv("LOG_TO_SQLITE"), True)
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    def ensure_directories(self):
        directories = [
            self.DATA_DIR,
            self.LOGS_DIR,
            self.LOGS_RAW_DIR,
            self.LOCKS_DIR,
            self.CONTESTS_DIR,
        ]

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

    def validate(self):
        if not self.PROJECT_ROOT.exists():
            raise ValueError(f"Project root does not exist: {self.PROJECT_ROOT}")

        if self.LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(
                f"LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL (got {self.LOG_LEVEL})"
            )

        if not self.FOUNDRY_COMPAT_PACKAGE:
            raise ValueError("FOUNDRY_COMPAT_PACKAGE must not be empty")

    def summary(self) -> str:
        return f"""
C4 Crawler Configuration:
  Project Root: {self.PROJECT_ROOT}
  Data Dir: {self.DATA_DIR}
  Contests Dir: {self.CONTESTS_DIR}
  Discovery Depth: {self.DISCOVERY_MAX_DEPTH}
  Ignored Dirs: {', '.join(self.IGNORED_DIRS)}
  Artifact Workers: {self.ARTIFACT_WORKERS}
  Toolchain: {self.FORGE_BIN} / {self.NPM_BIN} / {self.NPX_BIN} / {self.GIT_BIN}
  Logging: {'Enabled' if self.ENABLE_LOGGING else 'Disabled'} ({self.LOG_LEVEL})
  SQLite Build Log: {'Enabled' if self.LOG_TO_SQLITE else 'Disabled'}
""".strip()


config = CrawlerConfig()
if os.getenv("C4_CRAWLER_SKIP_VALIDATION") != "1":
    try:
        config.validate()
    except ValueError as e:
        print(f"[WARNING]  Configuration warning: {e}")

PROJECT_ROOT = config.PROJECT_ROOT
DATA_DIR = config.DATA_DIR
LOGS_DIR = config.LOGS_DIR
CONTESTS_DIR = config.CONTESTS_DIR

if __name__ == "__main__":
    print(config.summary())
    print()

    print("paths:")
    print(f"  project root: {config.PROJECT_ROOT}")
    print(f"  data dir: {config.DATA_DIR}")
    print(f"  logs dir: {config.LOGS_DIR}")
    print(f"  build log db: {config.LOGS_DB_PATH}")
    print(f"  contests dir: {config.CONTESTS_DIR}")
