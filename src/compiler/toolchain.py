"""subprocess-backed solidity toolchain (forge, npm, npx, git)"""
from __future__ import annotations

import logging
import subprocess
import time
from pathlib import Path
from typing import List, Optional

from src.config import config
from src.interfaces import CommandResult, IToolchain

logger = logging.getLogger(__name__)

# shell convention for "command not found"
COMMAND_NOT_FOUND = 127


def run_command(cmd: List[str], cwd: Path) -> CommandResult:
    """run cmd synchronously in cwd, capturing output; never raises on exit status"""
    cwd = Path(cwd)
    logger.debug(f"Running {' '.join(cmd)} in {cwd}", extra={"cwd": str(cwd)})

    start = time.time()
    try:
        proc = subprocess.run(cmd, cwd=str(cwd), capture_output=True, text=True)
    except FileNotFoundError as exc:
        return CommandResult(
            command=cmd,
            returncode=COMMAND_NOT_FOUND,
            stderr=f"{cmd[0]}: command not found ({exc})",
            duration=time.time() - start,
            cwd=cwd,
        )

    return CommandResult(
        command=cmd,
        returncode=proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
        duration=time.time() - start,
        cwd=cwd,
    )


class SubprocessToolchain(IToolchain):
    """runs the real toolchain executables configured in config"""

    def __init__(
        self,
        forge_bin: Optional[str] = None,
        npm_bin: Optional[str] = None,
        npx_bin: Optional[str] = None,
        git_bin: Optional[str] = None,
    ):
        self.forge_bin = forge_bin or config.FORGE_BIN
        self.npm_bin = npm_bin or config.NPM_BIN
        self.npx_bin = npx_bin or config.NPX_BIN
        self.git_bin = git_bin or config.GIT_BIN

    def install_dependencies(self, project_root: Path) -> CommandResult:
        return run_command([self.npm_bin, "install"], project_root)

    def install_foundry_compat(self, project_root: Path, package: str) -> CommandResult:
        return run_command([self.npm_bin, "install", "--save-dev", package], project_root)

    def init_foundry(self, project_root: Path) -> CommandResult:
        return run_command([self.npx_bin, "hardhat", "init-foundry"], project_root)

    def compile(self, project_root: Path) -> CommandResult:
        return run_command([self.forge_bin, "build"], project_root)

    def clone(self, repo_uri: str, target_dir: Path) -> CommandResult:
        target_dir = Path(target_dir)
        return run_command([self.git_bin, "clone", repo_uri, str(target_dir)], target_dir.parent)
