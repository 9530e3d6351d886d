"""input validation utilities"""

from pathlib import Path
from typing import List, Any
from dataclasses import dataclass, field
import os
import stat

from pydantic import ValidationError

from src.models.contest import ContestRecord
from src.models.contracts import ProjectType


@dataclass
class ValidationResult:
    """result of input validation."""
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        """allow using validationresult in boolean context."""
        return self.valid

    def __str__(self) -> str:
        lines = []
        if self.errors:
            lines.append("ERRORS:")
            for error in self.errors:
                lines.append(f"  - {error}")
        if self.warnings:
            lines.append("WARNINGS:")
            for warning in self.warnings:
                lines.append(f"  - {warning}")
        return "\n".join(lines) if lines else "Validation passed"

    def add_error(self, error: str) -> None:
        """add an error and mark as invalid."""
        self.errors.append(error)
        self.valid = False

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)

    def merge(self, other: "ValidationResult") -> None:
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        if not other.valid:
            self.valid = False


class InputValidator:
    """validates user inputs before processing."""

    def validate_repository_path(self, path: str) -> ValidationResult:
        """validate a local repository checkout directory"""
        result = ValidationResult(valid=True)

        if not path or not isinstance(path, str):
            result.add_error("Repository path must be a non-empty string")
            return result

        try:
            p = Path(path).resolve()
        except (ValueError, OSError) as e:
            result.add_error(f"Invalid path format: {e}")
            return result

        try:
            stat_info = os.stat(str(p))
        except OSError as e:
            result.add_error(f"Cannot access directory: {e}")
            return result

        if not stat.S_ISDIR(stat_info.st_mode):
            result.add_error(f"Path is not a directory: {path}")
            return result

        # nested roots are still discovered, so a bare top level is only a warning
        if ProjectType.from_repo_dir(p) == ProjectType.UNKNOWN:
            result.add_warning(f"No build descriptor at the top level of {path}")

        if not (p / ".git").exists():
            result.add_warning(f"Not a git checkout: {path}")

        return result

    def validate_contest_records(self, data: Any) -> ValidationResult:
        """validate the decoded contents of a contests file"""
        result = ValidationResult(valid=True)

        if not isinstance(data, list):
            result.add_error("Contests file must contain a JSON list")
            return result

        if not data:
            result.add_warning("Contests file is empty")

        seen = set()
        for i, item in enumerate(data):
            try:
                record = ContestRecord.model_validate(item)
            except ValidationError as e:
                result.add_error(f"Record {i}: {e.errors()[0]['msg']}")
                continue

            if not record.repo_uri:
                result.add_warning(f"Record {i} ({record.name}) has no repository URI")
            elif record.repo_uri in seen:
                result.add_warning(f"Record {i} ({record.name}) repeats repository {record.repo_uri}")
            else:
                seen.add(record.repo_uri)

        return result

    def validate_config_value(
        self,
        name: str,
        value: Any,
        expected_type: type,
        min_val: Any = None,
        max_val: Any = None,
    ) -> ValidationResult:
        result = ValidationResult(valid=True)

        if not isinstance(value, expected_type):
            result.add_error(f"{name} must be {expected_type.__name__}, got {type(value).__name__}")
            return result

        if min_val is not None and value < min_val:
            result.add_error(f"{name} must be >= {min_val}, got {value}")
        if max_val is not None and value > max_val:
            result.add_error(f"{name} must be <= {max_val}, got {value}")

        return result


def validate_startup_config() -> ValidationResult:
    """validate tool paths and numeric settings before a run"""
    import shutil

    from src.config import config

    result = ValidationResult(valid=True)
    validator = InputValidator()

    config_checks = [
        ("DISCOVERY_MAX_DEPTH", config.DISCOVERY_MAX_DEPTH, int, 0, 8),
        ("ARTIFACT_WORKERS", config.ARTIFACT_WORKERS, int, 1, 256),
    ]
    for name, value, expected_type, min_val, max_val in config_checks:
        result.merge(validator.validate_config_value(name, value, expected_type, min_val, max_val))

    # missing tools only fail the roots that need them
    for name, binary in (
        ("FORGE_BIN", config.FORGE_BIN),
        ("NPM_BIN", config.NPM_BIN),
        ("NPX_BIN", config.NPX_BIN),
        ("GIT_BIN", config.GIT_BIN),
    ):
        if shutil.which(binary) is None:
            result.add_warning(f"{name} not found on PATH: {binary}")

    return result


def validate_repository(path: str) -> ValidationResult:
    return InputValidator().validate_repository_path(path)


def validate_contests(data: Any) -> ValidationResult:
    return InputValidator().validate_contest_records(data)
