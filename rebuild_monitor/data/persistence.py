"""Data persistence layer for fleet snapshots.

Provides a JSON cache of the last published snapshot for fast startup and
SQLite for rebuild progress history. Persistence is optional: the monitor
runs purely in memory unless a data directory is configured.
"""

from __future__ import annotations

import json
import os
import sqlite3
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import FleetSnapshot


def get_data_dir() -> Path:
    """Get user-persistent data directory.

    Returns ~/.rebuild_monitor/ by default, or REBUILD_MONITOR_DATA_DIR env var.
    """
    return Path(os.environ.get("REBUILD_MONITOR_DATA_DIR", Path.home() / ".rebuild_monitor"))


class DataStore:
    """Persistent storage for fleet data.

    Provides two storage mechanisms:
    - JSON cache files for fast startup
    - SQLite database for per-array rebuild history
    """

    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = Path(data_dir) if data_dir else get_data_dir()
        self.cache_dir = self.data_dir / "cache"
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.db_path = self.data_dir / "rebuild_history.db"
        self._init_db()

    # --- JSON Cache (fast reads) ---

    def save_cache(self, name: str, data: Dict[str, Any]) -> None:
        """Save data to a JSON cache file.

        The file is written next to its target and renamed into place so a
        crash never leaves a half-written cache behind.
        """
        cache_file = self.cache_dir / f"{name}.json"
        tmp_file = cache_file.with_suffix(".json.tmp")
        tmp_file.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
        os.replace(tmp_file, cache_file)

    def load_cache(self, name: str, max_age: Optional[timedelta] = None) -> Optional[Dict[str, Any]]:
        """Load data from a JSON cache file.

        Args:
            name: Cache name
            max_age: Maximum age of cache to accept (None = any age)

        Returns:
            Cached data or None if not found/expired/corrupt
        """
        cache_file = self.cache_dir / f"{name}.json"
        if not cache_file.exists():
            return None

        if max_age:
            mtime = datetime.fromtimestamp(cache_file.stat().st_mtime)
            if datetime.now() - mtime > max_age:
                return None

        try:
            return json.loads(cache_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            return None

    def get_cache_age(self, name: str) -> Optional[float]:
        """Get age of cache in seconds.

        Returns None if cache doesn't exist.
        """
        cache_file = self.cache_dir / f"{name}.json"
        if not cache_file.exists():
            return None
        mtime = datetime.fromtimestamp(cache_file.stat().st_mtime)
        return (datetime.now() - mtime).total_seconds()

    # --- Snapshots ---

    def save_fleet_snapshot(self, snapshot: FleetSnapshot, name: str = "fleet_snapshot") -> None:
        self.save_cache(name, snapshot.to_dict())

    def load_fleet_snapshot(
        self, name: str = "fleet_snapshot", max_age: Optional[timedelta] = None
    ) -> Optional[FleetSnapshot]:
        """Restore the last cached snapshot.

        Returns None when there is no cache or it no longer parses.
        """
        data = self.load_cache(name, max_age=max_age)
        if not data:
            return None
        try:
            return FleetSnapshot.from_dict(data)
        except (ValueError, TypeError, KeyError):
            return None

    # --- SQLite (rebuild history) ---

    def _init_db(self) -> None:
        """Create database tables if they don't exist."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS rebuild_history (
                    id INTEGER PRIMARY KEY,
                    array_id TEXT NOT NULL,
                    snapshot_version INTEGER NOT NULL,
                    status TEXT NOT NULL,
                    rebuild_progress INTEGER NOT NULL,
                    risk TEXT,
                    timestamp TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_array_timestamp
                ON rebuild_history(array_id, timestamp DESC)
            """)

    def record_snapshot(self, snapshot: FleetSnapshot, risks: Optional[Dict[str, str]] = None) -> None:
        """Record one history row per array for a published snapshot.

        Args:
            snapshot: Published snapshot
            risks: Optional mapping of array id to risk level value
        """
        risks = risks or {}
        now = datetime.utcnow().isoformat()
        rows = [
            (a.id, snapshot.version, a.status.value, a.rebuild_progress, risks.get(a.id), now)
            for a in snapshot.arrays
        ]
        with sqlite3.connect(self.db_path) as conn:
            conn.executemany(
                "INSERT INTO rebuild_history "
                "(array_id, snapshot_version, status, rebuild_progress, risk, timestamp) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                rows,
            )

    def get_array_history(
        self, array_id: str, limit: int = 100, since: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """Get rebuild history for an array, most recent first."""
        with sqlite3.connect(self.db_path) as conn:
            if since:
                query = """
                    SELECT timestamp, snapshot_version, status, rebuild_progress, risk
                    FROM rebuild_history
                    WHERE array_id = ? AND timestamp > ?
                    ORDER BY id DESC
                    LIMIT ?
                """
                rows = conn.execute(query, (array_id, since.isoformat(), limit)).fetchall()
            else:
                query = """
                    SELECT timestamp, snapshot_version, status, rebuild_progress, risk
                    FROM rebuild_history
                    WHERE array_id = ?
                    ORDER BY id DESC
                    LIMIT ?
                """
                rows = conn.execute(query, (array_id, limit)).fetchall()

        return [
            {
                "timestamp": ts,
                "version": version,
                "status": status,
                "rebuild_progress": progress,
                "risk": risk,
            }
            for ts, version, status, progress, risk in rows
        ]

    def cleanup_old_data(self, days: int = 30) -> int:
        """Remove history older than specified days.

        Returns number of rows deleted.
        """
        cutoff = (datetime.utcnow() - timedelta(days=days)).isoformat()
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM rebuild_history WHERE timestamp < ?", (cutoff,))
            return cursor.rowcount
