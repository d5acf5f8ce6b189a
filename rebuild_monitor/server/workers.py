"""Background workers for fleet refresh.

``FleetState`` owns the only mutable handle on the fleet: it applies refresh
ticks one at a time and publishes each result as a new immutable snapshot.
``RefreshWorker`` drives those ticks on a fixed period.
"""

from __future__ import annotations

import datetime as dt
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, List, Optional

from ..collectors.base import BaseCollector, CollectorError
from ..data.models import DiskArray, FleetSnapshot, RiskLevel
from ..data.persistence import DataStore
from ..insights.fleet import FleetFilters, FleetSummary, filter_options, summarize
from ..insights.hazards import ArrayAssessment, HazardWarning, assess
from ..simulation.progress import ProgressSimulator, disk_rebuild_progress

DEFAULT_REFRESH_SECONDS = 30
MIN_REFRESH_SECONDS = 0.1
CACHE_NAME = "fleet_snapshot"
CACHE_MAX_AGE = timedelta(hours=24)


def _log(msg: str) -> None:
    """Print with flush for reliable output in daemon threads."""
    print(msg, flush=True)


def _utc_now_iso() -> str:
    return dt.datetime.utcnow().replace(microsecond=0).isoformat() + "Z"


class RefreshError(Exception):
    """A refresh tick failed; the previous snapshot is still published."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of one refresh attempt.

    ``snapshot`` is the snapshot published after the attempt: the new one on
    success, the retained previous one on failure.
    """

    ok: bool
    detail: str
    snapshot: FleetSnapshot
    error: Optional[RefreshError] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "detail": self.detail,
            "version": self.snapshot.version,
            "error": str(self.error) if self.error else None,
        }


class FleetState:
    """Manages the published fleet snapshot.

    Loads cached data on startup when a store is configured, then advances
    the fleet on every refresh. Readers get immutable snapshots and never
    need to lock.

    Args:
        initial: Starting snapshot; takes precedence over the cache
        feed: Live source read on every tick; None keeps the current arrays
        store: Optional persistence for the snapshot cache and history
        simulator: Progress simulator (a fresh one by default)
        simulate: Whether ticks advance rebuilds; defaults to True without a feed
    """

    def __init__(
        self,
        initial: Optional[FleetSnapshot] = None,
        *,
        feed: Optional[BaseCollector] = None,
        store: Optional[DataStore] = None,
        simulator: Optional[ProgressSimulator] = None,
        simulate: Optional[bool] = None,
        source_name: str = "fleet",
    ):
        self.feed = feed
        self.store = store
        self.simulator = simulator or ProgressSimulator()
        self.simulate = (feed is None) if simulate is None else simulate
        self.source_name = source_name
        self._snapshot = FleetSnapshot()
        self._last_error: Optional[str] = None
        self._last_refresh_ts: Optional[float] = None
        self._payload_lock = threading.Lock()
        self._refresh_lock = threading.Lock()
        self._refresh_count = 0
        self._cleanup_every = 100
        self._load_initial_data(initial)

    def _load_initial_data(self, initial: Optional[FleetSnapshot]) -> None:
        """Adopt the given snapshot, or the cached one if a store is configured."""
        if initial is not None:
            self._snapshot = initial
            self._last_refresh_ts = time.time()
            return
        if self.store is None:
            return
        snapshot = self.store.load_fleet_snapshot(CACHE_NAME, max_age=CACHE_MAX_AGE)
        if snapshot is None:
            return
        # Report the cache write time, not the restore time
        age = self.store.get_cache_age(CACHE_NAME) or 0.0
        self._snapshot = snapshot
        self._last_refresh_ts = time.time() - age
        _log(
            f"[{self.source_name}] Restored {len(snapshot)} arrays from cache "
            f"(version {snapshot.version}, {age:.0f}s old)"
        )

    # --- Refresh ---

    def refresh_now(self, *, blocking: bool = True) -> RefreshResult:
        """Apply one refresh tick and publish the result.

        Ticks are serialized: a call made while another tick is in flight
        waits for it (or returns immediately when ``blocking`` is False). On
        failure the previous snapshot stays published and the error is
        returned in the result.
        """
        if not self._refresh_lock.acquire(blocking=blocking):
            return RefreshResult(False, "Refresh already in progress.", self.get_snapshot())
        try:
            current = self.get_snapshot()
            try:
                arrays = self._next_arrays(current)
                snapshot = FleetSnapshot(
                    arrays=tuple(arrays),
                    version=current.version + 1,
                    generated_at=_utc_now_iso(),
                )
            except Exception as exc:
                error = exc if isinstance(exc, RefreshError) else RefreshError(str(exc), exc)
                with self._payload_lock:
                    self._last_error = str(error)
                _log(f"[{self.source_name}] Refresh failed, keeping version {current.version}: {error}")
                return RefreshResult(False, f"Refresh failed: {error}", current, error)

            with self._payload_lock:
                self._snapshot = snapshot
                self._last_error = None
                self._last_refresh_ts = time.time()
            self._persist(snapshot)
            return RefreshResult(True, "Refreshed.", snapshot)
        finally:
            self._refresh_lock.release()

    def _next_arrays(self, current: FleetSnapshot) -> List[DiskArray]:
        if self.feed is not None:
            try:
                arrays = self.feed.collect_arrays()
            except CollectorError as e:
                raise RefreshError(str(e), e)
            # Guard: do not overwrite good data with empty results
            if not arrays and current.arrays:
                raise RefreshError("Feed returned 0 arrays; keeping stale data")
        else:
            arrays = list(current.arrays)

        if self.simulate:
            arrays = self.simulator.tick_all(arrays)
        return arrays

    def _persist(self, snapshot: FleetSnapshot) -> None:
        """Write the snapshot cache and history. Failures here never fail the refresh."""
        if self.store is None:
            return
        try:
            self.store.save_fleet_snapshot(snapshot, CACHE_NAME)
            risks = {a.id: assess(a).risk.value for a in snapshot.arrays}
            self.store.record_snapshot(snapshot, risks)

            self._refresh_count += 1
            if self._refresh_count % self._cleanup_every == 0:
                deleted = self.store.cleanup_old_data(days=30)
                if deleted > 0:
                    _log(f"[{self.source_name}] Cleaned up {deleted} old history rows")
        except Exception as exc:
            _log(f"[{self.source_name}] Persisting snapshot {snapshot.version} failed: {exc}")

    # --- Query surface ---

    def get_snapshot(self) -> FleetSnapshot:
        with self._payload_lock:
            return self._snapshot

    def get_array(self, array_id: str) -> Optional[DiskArray]:
        return self.get_snapshot().get(array_id)

    def get_assessment(self, array_id: str) -> Optional[ArrayAssessment]:
        array = self.get_array(array_id)
        return assess(array) if array is not None else None

    def get_risk_level(self, array_id: str) -> Optional[RiskLevel]:
        assessment = self.get_assessment(array_id)
        return assessment.risk if assessment else None

    def get_warning(self, array_id: str) -> Optional[HazardWarning]:
        assessment = self.get_assessment(array_id)
        return assessment.warning if assessment else None

    def get_disk_progress(self, array_id: str) -> Optional[Dict[str, int]]:
        array = self.get_array(array_id)
        return disk_rebuild_progress(array) if array is not None else None

    def summarize(self, filters: Optional[FleetFilters] = None) -> FleetSummary:
        return summarize(self.get_snapshot(), filters)

    def filter_options(self) -> Dict[str, List[str]]:
        return filter_options(self.get_snapshot())

    def last_updated(self) -> Optional[dt.datetime]:
        """UTC time of the last successful refresh (or initial load)."""
        with self._payload_lock:
            ts = self._last_refresh_ts
        if ts is None:
            return None
        return dt.datetime.fromtimestamp(ts, tz=dt.timezone.utc)

    def last_error(self) -> Optional[str]:
        with self._payload_lock:
            return self._last_error

    def is_ready(self) -> bool:
        """Check if data is available."""
        return self.last_updated() is not None

    def get_status(self) -> Dict[str, Any]:
        """Get status information for API responses."""
        snapshot = self.get_snapshot()
        updated = self.last_updated()
        return {
            "ready": self.is_ready(),
            "version": snapshot.version,
            "array_count": len(snapshot),
            "last_updated": updated.isoformat() if updated else None,
            "last_error": self.last_error(),
            "feed": self.feed.name if self.feed else None,
            "simulate": self.simulate,
        }


class RefreshWorker(threading.Thread):
    """Background worker for periodic fleet refresh."""

    def __init__(self, state: FleetState, interval_seconds: float = DEFAULT_REFRESH_SECONDS):
        super().__init__(name="fleet-refresh-worker", daemon=True)
        self.state = state
        self.interval = max(MIN_REFRESH_SECONDS, interval_seconds)
        self._stop_event = threading.Event()

    def run(self) -> None:
        _log(f"[fleet-refresh] Starting (interval={self.interval}s)")
        feed = self.state.feed
        if feed is not None and not feed.is_available():
            _log(f"[fleet-refresh] WARNING: {feed.display_name} not available, will retry each cycle")
        while not self._stop_event.wait(self.interval):
            result = self.state.refresh_now(blocking=True)
            if result.ok:
                _log(f"[fleet-refresh] Published version {result.snapshot.version}")
        _log("[fleet-refresh] Stopped")

    def stop(self) -> None:
        self._stop_event.set()

    def shutdown(self, timeout: float = 5.0) -> None:
        """Stop the timer and wait for any in-flight tick to finish."""
        self.stop()
        if self.is_alive():
            self.join(timeout=timeout)
