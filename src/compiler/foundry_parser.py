"""foundry config parser"""

import logging
import tomllib
from pathlib import Path
from typing import Dict, List, Optional, Union, Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from src.compiler.errors import ParseConfigError
from src.models.artifacts import SOLIDITY_FILES_CACHE_FILENAME
from src.models.contracts import FOUNDRY_CONFIG_FILE, PathLayout

logger = logging.getLogger(__name__)


class FoundryProfileSchema(BaseModel):
    """recognized keys of [profile.default]"""

    model_config = ConfigDict(extra="allow")

    src: Optional[str] = None
    libs: Optional[List[str]] = None
    test: Optional[str] = None
    cache_path: Optional[str] = None
    out: Optional[str] = None
    remappings: Optional[List[str]] = None

    @field_validator("libs", mode="before")
    @classmethod
    def _single_lib(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value


class FoundryConfigParser:
    """parses foundry.toml (and remappings.txt) into a PathLayout"""

    def __init__(self, project_root: Union[str, Path]):
        self.project_root = Path(project_root).resolve()
        self.config_file = self.project_root / FOUNDRY_CONFIG_FILE
        self.profile = self._parse_foundry_toml()
        self.remappings = self._load_remappings()

    @property
    def src_dir(self) -> Path:
        if self.profile.src is not None:
            return self.project_root / self.profile.src
        contracts = self.project_root / "contracts"
        src = self.project_root / "src"
        if not contracts.exists() and src.exists():
            return src
        return contracts

    @property
    def test_dir(self) -> Optional[Path]:
        if self.profile.test is not None:
            return self.project_root / self.profile.test
        test = self.project_root / "test"
        return test if test.exists() else None

    @property
    def out_dir(self) -> Path:
        return self.project_root / (self.profile.out or "out")

    @property
    def cache_file(self) -> Path:
        return self.project_root / (self.profile.cache_path or "cache") / SOLIDITY_FILES_CACHE_FILENAME

    @property
    def libs(self) -> List[Path]:
        if self.profile.libs is not None:
            return [self.project_root / lib for lib in self.profile.libs]
        lib = self.project_root / "lib"
        node_modules = self.project_root / "node_modules"
        if not lib.exists() and node_modules.exists():
            return [node_modules]
        return [lib]

    def layout(self) -> PathLayout:
        return PathLayout(
            root=self.project_root,
            sources=self.src_dir,
            artifacts=self.out_dir,
            cache_file=self.cache_file,
            libraries=self.libs,
            tests=self.test_dir,
            remappings=self.remappings,
        )

    def _parse_foundry_toml(self) -> FoundryProfileSchema:
        if not self.config_file.is_file():
            raise ParseConfigError(f"Missing {FOUNDRY_CONFIG_FILE} in {self.project_root}")

        try:
            content = self.config_file.read_text(encoding="utf-8")
            parsed = tomllib.loads(content)
        except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
            raise ParseConfigError(f"Failed to parse {self.config_file}: {e}") from e

        profiles = parsed.get("profile", {})
        default_profile = profiles.get("default", {}) if isinstance(profiles, dict) else None
        if not isinstance(default_profile, dict):
            raise ParseConfigError(f"Failed to parse {self.config_file}: [profile.default] is not a table")

        try:
            return FoundryProfileSchema.model_validate(default_profile)
        except ValidationError as e:
            raise ParseConfigError(f"Failed to parse {self.config_file}: {e}") from e

    def _load_remappings(self) -> Dict[str, Path]:
        lines = list(self.profile.remappings or [])
        remap_file = self.project_root / "remappings.txt"
        if remap_file.exists():
            try:
                lines.extend(remap_file.read_text(encoding="utf-8").splitlines())
            except (OSError, UnicodeDecodeError) as e:
                raise ParseConfigError(f"Failed to read {remap_file}: {e}") from e

        remappings = {}
        for line in lines:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            prefix, target = line.split("=", 1)
            prefix, target = prefix.strip(), target.strip()
            if not prefix or not target:
                continue
            # first definition wins, descriptor entries before remappings.txt
            remappings.setdefault(prefix, self.project_root / target)
        return remappings


def parse_foundry_config(project_root: Union[str, Path]) -> PathLayout:
    """resolve a foundry project's path layout"""
    layout = FoundryConfigParser(project_root).layout()
    logger.info(f"Project path layout {layout}", extra={"project_root": str(layout.root)})
    return layout
