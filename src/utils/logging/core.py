"""
Pipeline Logger Core Implementation

This module contains the PipelineLogger class, which provides
dual-layer logging (JSON + SQLite) for repository extraction runs.

The logger captures:
- Discovery results (build roots and their project types)
- Build steps (command, exit status, duration, stderr on failure)
- Per-root extraction counts (source files, contracts, interfaces)
- Per-root errors (error type and message)
"""

import json
import re
import sqlite3
import threading
from pathlib import Path
from datetime import datetime
from typing import Dict, Any, Optional, List, Tuple

from src.config import config
from src.utils.logging.types import LogCategory
from src.utils.correlation import current_run, get_run_id

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


class PipelineLogger:
    """
    Dual-layer build event log

    Usage:
        event_log = PipelineLogger()
        event_log.log_build_step("/repo/projA", "compile", ["forge", "build"],
                                 success=False, returncode=1, stderr="...")
        failures = event_log.query_failures()
    """

    def __init__(self, logs_dir: Optional[Path] = None, enable_sqlite: Optional[bool] = None):
        self.logs_dir = Path(logs_dir) if logs_dir else config.LOGS_DIR
        self.raw_dir = self.logs_dir / "raw"
        self.db_path = self.logs_dir / config.LOGS_DB_PATH.name
        self.enable_sqlite = config.LOG_TO_SQLITE if enable_sqlite is None else enable_sqlite

        # raw filenames must stay unique across worker threads
        self._seq_lock = threading.Lock()
        self._seq = 0

        for category in LogCategory:
            (self.raw_dir / category.value).mkdir(parents=True, exist_ok=True)

        if self.enable_sqlite:
            self._init_database()

    def _init_database(self):
        """Initialize SQLite database with tables"""
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS discoveries (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    run_id TEXT,
                    repo_dir TEXT NOT NULL,
                    num_roots INTEGER NOT NULL,
                    roots_json TEXT
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS build_events (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    run_id TEXT,
                    project_root TEXT NOT NULL,
                    step TEXT NOT NULL,
                    command TEXT,
                    success INTEGER NOT NULL,
                    returncode INTEGER,
                    duration_seconds REAL,
                    stderr TEXT
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS extraction_runs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    run_id TEXT,
                    project_root TEXT NOT NULL,
                    project_type TEXT,
                    source_files INTEGER,
                    contracts INTEGER,
                    interfaces INTEGER,
                    duration_seconds REAL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS errors (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    run_id TEXT,
                    project_root TEXT,
                    error_type TEXT NOT NULL,
                    error_message TEXT
                )
            """)

            cursor.execute("CREATE INDEX IF NOT EXISTS idx_build_events_root ON build_events(project_root)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_extraction_runs_root ON extraction_runs(project_root)")

            conn.commit()

    def _now(self) -> str:
        """Get current timestamp in ISO format"""
        return datetime.now().isoformat()

    def _filename(self, *parts: str) -> str:
        with self._seq_lock:
            self._seq += 1
            seq = self._seq
        stem = "_".join(_UNSAFE_FILENAME_CHARS.sub("-", p).strip("-") or "x" for p in parts)
        return f"{datetime.now().strftime('%Y-%m-%dT%H%M%S')}_{seq:04d}_{stem}.json"

    def _save_json(self, category: LogCategory, filename: str, data: Dict[str, Any]):
        """Save raw JSON log file stamped with the active repository run"""
        run = current_run()
        if run is not None:
            data.setdefault("run_id", run.run_id)
            data.setdefault("repository", run.repository)

        filepath = self.raw_dir / category.value / filename
        with open(filepath, 'w', encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=str)

    def _insert(self, sql: str, params: Tuple):
        if not self.enable_sqlite:
            return
        with sqlite3.connect(str(self.db_path)) as conn:
            conn.execute(sql, params)
            conn.commit()

    def log_discovery(self, repo_dir: str, project_roots: List[Tuple[str, str]]):
        """
        Log the build roots found in a repository

        Saves to:
        - JSON: logs/raw/discovery/...
        - SQLite: discoveries table
        """
        timestamp = self._now()
        roots = [{"path": path, "project_type": project_type} for path, project_type in project_roots]

        self._save_json(LogCategory.DISCOVERY, self._filename(Path(repo_dir).name, "discovery"), {
            "timestamp": timestamp,
            "repo_dir": repo_dir,
            "project_roots": roots,
        })

        self._insert("""
            INSERT INTO discoveries (timestamp, run_id, repo_dir, num_roots, roots_json)
            VALUES (?, ?, ?, ?, ?)
        """, (timestamp, get_run_id(), repo_dir, len(roots), json.dumps(roots)))

    def log_build_step(
        self,
        project_root: str,
        step: str,
        command: List[str],
        success: bool,
        returncode: int = 0,
        duration_seconds: float = 0.0,
        stderr: Optional[str] = None,
    ):
        """
        Log one external build step (install, init, compile)

        Saves to:
        - JSON: logs/raw/builds/...
        - SQLite: build_events table
        """
        timestamp = self._now()

        self._save_json(LogCategory.BUILD, self._filename(Path(project_root).name, step), {
            "timestamp": timestamp,
            "project_root": project_root,
            "step": step,
            "command": command,
            "success": success,
            "returncode": returncode,
            "duration_seconds": duration_seconds,
            "stderr": stderr,
        })

        self._insert("""
            INSERT INTO build_events
            (timestamp, run_id, project_root, step, command, success, returncode, duration_seconds, stderr)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            timestamp, get_run_id(), project_root, step, " ".join(command),
            int(success), returncode, duration_seconds, stderr,
        ))

    def log_extraction(
        self,
        project_root: str,
        project_type: str,
        source_files: int,
        contracts: int,
        interfaces: int,
        duration_seconds: float = 0.0,
    ):
        """Log per-root extraction counts"""
        timestamp = self._now()

        self._save_json(LogCategory.EXTRACTION, self._filename(Path(project_root).name, "extraction"), {
            "timestamp": timestamp,
            "project_root": project_root,
            "project_type": project_type,
            "source_files": source_files,
            "contracts": contracts,
            "interfaces": interfaces,
            "duration_seconds": duration_seconds,
        })

        self._insert("""
            INSERT INTO extraction_runs
            (timestamp, run_id, project_root, project_type, source_files, contracts, interfaces, duration_seconds)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            timestamp, get_run_id(), project_root, project_type,
            source_files, contracts, interfaces, duration_seconds,
        ))

    def log_error(self, project_root: Optional[str], error_type: str, error_message: str):
        """Log a per-root or per-repository failure"""
        timestamp = self._now()

        self._save_json(LogCategory.ERROR, self._filename(Path(project_root or "repository").name, error_type), {
            "timestamp": timestamp,
            "project_root": project_root,
            "error_type": error_type,
            "error_message": error_message,
        })

        self._insert("""
            INSERT INTO errors (timestamp, run_id, project_root, error_type, error_message)
            VALUES (?, ?, ?, ?, ?)
        """, (timestamp, get_run_id(), project_root, error_type, error_message))

    def query_failures(self, project_root: Optional[str] = None) -> List[Dict[str, Any]]:
        """Failed build steps, newest first"""
        if not self.enable_sqlite:
            return []

        sql = "SELECT * FROM build_events WHERE success = 0"
        params: Tuple = ()
        if project_root:
            sql += " AND project_root = ?"
            params = (project_root,)
        sql += " ORDER BY id DESC"

        with sqlite3.connect(str(self.db_path)) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(sql, params).fetchall()
        return [dict(row) for row in rows]

    def query_extractions(self) -> List[Dict[str, Any]]:
        if not self.enable_sqlite:
            return []
        with sqlite3.connect(str(self.db_path)) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute("SELECT * FROM extraction_runs ORDER BY id").fetchall()
        return [dict(row) for row in rows]
