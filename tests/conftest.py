"""shared fixtures: a scripted toolchain and on-disk build output writers"""

import json
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import pytest

from src.config import config
from src.interfaces import CommandResult, IToolchain


class FakeToolchain(IToolchain):
    """
    Records every call instead of spawning processes.

    failures maps a step name ("compile") or "<root dir name>:<step>" to
    (returncode, stderr). Hooks run after a successful step so tests can
    materialize what the real tool would have written.
    """

    def __init__(
        self,
        failures: Optional[Dict[str, Tuple[int, str]]] = None,
        on_compile: Optional[Callable[[Path], None]] = None,
        on_init_foundry: Optional[Callable[[Path], None]] = None,
        on_clone: Optional[Callable[[Path], None]] = None,
    ):
        self.failures = failures or {}
        self.on_compile = on_compile
        self.on_init_foundry = on_init_foundry
        self.on_clone = on_clone
        self.calls: List[Tuple[str, Path]] = []

    def steps(self) -> List[str]:
        return [step for step, _ in self.calls]

    def _run(self, step: str, cwd: Path, command: List[str], hook=None, hook_arg=None) -> CommandResult:
        cwd = Path(cwd)
        self.calls.append((step, cwd))
        returncode, stderr = self.failures.get(
            f"{Path(hook_arg or cwd).name}:{step}",
            self.failures.get(step, (0, "")),
        )
        result = CommandResult(command=command, returncode=returncode, stderr=stderr, cwd=cwd)
        if result.success and hook is not None:
            hook(Path(hook_arg or cwd))
        return result

    def install_dependencies(self, project_root: Path) -> CommandResult:
        return self._run("install_dependencies", project_root, ["npm", "install"])

    def install_foundry_compat(self, project_root: Path, package: str) -> CommandResult:
        return self._run("install_foundry_compat", project_root, ["npm", "install", "--save-dev", package])

    def init_foundry(self, project_root: Path) -> CommandResult:
        return self._run("init_foundry", project_root, ["npx", "hardhat", "init-foundry"], self.on_init_foundry)

    def compile(self, project_root: Path) -> CommandResult:
        return self._run("compile", project_root, ["forge", "build"], self.on_compile)

    def clone(self, repo_uri: str, target_dir: Path) -> CommandResult:
        target_dir = Path(target_dir)
        return self._run("clone", target_dir.parent, ["git", "clone", repo_uri, str(target_dir)],
                         self.on_clone, target_dir)


def write_artifact(path: Path, bytecode: Optional[str] = "0x", imports=(), with_ast: bool = True) -> Path:
    data = {"abi": []}
    if bytecode is not None:
        data["bytecode"] = {"object": bytecode, "linkReferences": {}}
    if with_ast:
        data["ast"] = {
            "absolutePath": path.stem + ".sol",
            "nodeType": "SourceUnit",
            "nodes": [{"nodeType": "PragmaDirective"}] + [
                {"nodeType": "ImportDirective", "absolutePath": imported} for imported in imports
            ],
        }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def write_build_output(project_root: Path, sources: Dict[str, Dict], out: str = "out", cache: str = "cache") -> Path:
    """
    Write a foundry-style cache file plus one artifact per source.

    sources maps a source path (relative to project_root) to
    {"name", "version", "bytecode", "imports"}; "versions" may replace
    "version" to emit one artifact per compiler version.
    """
    project_root = Path(project_root)
    files = {}
    for source_name, source in sources.items():
        name = source.get("name", Path(source_name).stem)
        versions = source.get("versions") or [source.get("version", "0.8.19")]
        per_version = {}
        for i, version in enumerate(versions):
            rel = f"{Path(source_name).name}/{name}.json" if i == 0 else f"{Path(source_name).name}/{name}.{version}.json"
            write_artifact(
                project_root / out / rel,
                bytecode=source.get("bytecode", "0x"),
                imports=source.get("imports", ()),
                with_ast=source.get("ast", True),
            )
            per_version[version] = rel
        files[source_name] = {
            "lastModificationDate": 1700000000000,
            "sourceName": source_name,
            "artifacts": {name: per_version},
        }

    cache_file = project_root / cache / "solidity-files-cache.json"
    cache_file.parent.mkdir(parents=True, exist_ok=True)
    cache_file.write_text(json.dumps({"_format": "ethers-rs-sol-cache-3", "files": files}), encoding="utf-8")
    return cache_file


@pytest.fixture(autouse=True)
def crawler_home(tmp_path_factory, monkeypatch):
    """keep data/ (logs, locks) out of the source tree and out of tmp_path"""
    home = tmp_path_factory.mktemp("crawler-home")
    monkeypatch.setattr(config, "PROJECT_ROOT", home)
    return home


@pytest.fixture
def fake_toolchain():
    return FakeToolchain


@pytest.fixture
def build_output():
    return write_build_output


@pytest.fixture
def artifact_writer():
    return write_artifact


@pytest.fixture
def foundry_project(tmp_path):
    """factory: foundry root with a minimal descriptor"""

    def make(name: str = "proj", toml: str = '[profile.default]\nsrc = "src"\nout = "out"\nlibs = ["lib"]\n') -> Path:
        root = tmp_path / name
        (root / "src").mkdir(parents=True, exist_ok=True)
        (root / "foundry.toml").write_text(toml, encoding="utf-8")
        return root

    return make
