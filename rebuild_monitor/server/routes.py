"""HTTP request handlers for the fleet API.

Provides JSON endpoints for snapshots, per-array risk, fleet summaries and
refresh triggers. Presentation is left to whatever consumes the API.
"""

from __future__ import annotations

import json
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler
from typing import Any, Dict, Optional, TYPE_CHECKING
from urllib.parse import parse_qs, unquote, urlparse

from ..insights.fleet import FleetFilters, filter_disks
from ..insights.hazards import assess

if TYPE_CHECKING:
    from .workers import FleetState


class FleetRequestHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the fleet API.

    Serves:
    - GET  /api/status                 snapshot with per-array assessments
    - GET  /api/arrays                 arrays with their assessments
    - GET  /api/arrays/<id>            one array with assessment and disk progress
    - GET  /api/arrays/<id>/risk       risk level and warning
    - GET  /api/arrays/<id>/disks      disks, filterable by status and vendor
    - GET  /api/arrays/<id>/history    recorded ticks (needs a data directory)
    - GET  /api/summary                fleet summary, filterable
    - GET  /api/filters                available filter values
    - GET  /api/config                 deployment configuration
    - POST /api/refresh                run a refresh tick now
    """

    # These will be set by the server
    fleet_state: Optional["FleetState"] = None
    url_prefix: str = ""
    config: Optional[Dict] = None

    def log_message(self, format, *args):
        print(f"[api] {self.address_string()} {format % args}", flush=True)

    def do_GET(self):
        parsed = urlparse(self.path)
        stripped = self._strip_prefix(parsed.path)
        if stripped is None:
            self._send_error_json(HTTPStatus.NOT_FOUND, "Invalid prefix")
            return
        path = stripped.rstrip("/") or "/"
        query = parse_qs(parsed.query)

        if path == "/api/config":
            return self._handle_config()

        state = self.fleet_state
        if not state:
            self._send_error_json(HTTPStatus.SERVICE_UNAVAILABLE, "Server not initialized.")
            return

        if path == "/api/status":
            return self._handle_status(state)
        if path == "/api/arrays":
            return self._handle_arrays(state)
        if path == "/api/summary":
            return self._handle_summary(state, query)
        if path == "/api/filters":
            return self._send_json(state.filter_options())
        if path.startswith("/api/arrays/"):
            parts = [unquote(p) for p in path[len("/api/arrays/"):].split("/")]
            if len(parts) == 1:
                return self._handle_array_detail(state, parts[0])
            if len(parts) == 2 and parts[1] == "risk":
                return self._handle_array_risk(state, parts[0])
            if len(parts) == 2 and parts[1] == "disks":
                return self._handle_array_disks(state, parts[0], query)
            if len(parts) == 2 and parts[1] == "history":
                return self._handle_array_history(state, parts[0], query)

        self._send_error_json(HTTPStatus.NOT_FOUND, "Unknown endpoint")

    def do_OPTIONS(self):
        self.send_response(HTTPStatus.NO_CONTENT)
        self._send_cors_headers()
        self.send_header("Access-Control-Allow-Methods", "GET,POST,OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.end_headers()

    def do_POST(self):
        parsed = urlparse(self.path)
        stripped = self._strip_prefix(parsed.path)
        if stripped is None:
            self._send_error_json(HTTPStatus.NOT_FOUND, "Invalid prefix")
            return
        if stripped.rstrip("/") == "/api/refresh":
            return self._handle_refresh()
        self._send_error_json(HTTPStatus.NOT_FOUND, "Unknown endpoint")

    # --- API Handlers ---

    def _handle_status(self, state: "FleetState"):
        if not state.is_ready():
            self._send_json(
                {"error": state.last_error() or "Data not ready yet.", **state.get_status()},
                status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            )
            return
        snapshot = state.get_snapshot()
        self._send_json({
            "meta": state.get_status(),
            "summary": state.summarize().to_dict(),
            "arrays": [self._array_payload(a) for a in snapshot.arrays],
        })

    def _handle_arrays(self, state: "FleetState"):
        snapshot = state.get_snapshot()
        self._send_json({
            "version": snapshot.version,
            "arrays": [self._array_payload(a) for a in snapshot.arrays],
        })

    def _handle_array_detail(self, state: "FleetState", array_id: str):
        array = state.get_array(array_id)
        if array is None:
            self._send_error_json(HTTPStatus.NOT_FOUND, f"Array '{array_id}' not found.")
            return
        payload = self._array_payload(array)
        payload["disk_rebuild_progress"] = state.get_disk_progress(array_id)
        self._send_json(payload)

    def _handle_array_risk(self, state: "FleetState", array_id: str):
        assessment = state.get_assessment(array_id)
        if assessment is None:
            self._send_error_json(HTTPStatus.NOT_FOUND, f"Array '{array_id}' not found.")
            return
        self._send_json(assessment.to_dict())

    def _handle_array_disks(self, state: "FleetState", array_id: str, query: Dict[str, list]):
        array = state.get_array(array_id)
        if array is None:
            self._send_error_json(HTTPStatus.NOT_FOUND, f"Array '{array_id}' not found.")
            return
        try:
            disks = filter_disks(
                array,
                status=(query.get("status") or [None])[0],
                vendor=(query.get("vendor") or [None])[0],
            )
        except ValueError as exc:
            self._send_error_json(HTTPStatus.BAD_REQUEST, str(exc))
            return
        self._send_json({
            "array_id": array.id,
            "total": len(array.disks),
            "matched": len(disks),
            "disks": [d.to_dict() for d in disks],
        })

    def _handle_array_history(self, state: "FleetState", array_id: str, query: Dict[str, list]):
        if state.store is None:
            self._send_error_json(HTTPStatus.NOT_FOUND, "History is disabled; set data_dir to enable it.")
            return
        if state.get_array(array_id) is None:
            self._send_error_json(HTTPStatus.NOT_FOUND, f"Array '{array_id}' not found.")
            return
        try:
            limit = int((query.get("limit") or ["100"])[0])
        except ValueError:
            self._send_error_json(HTTPStatus.BAD_REQUEST, "limit must be an integer")
            return
        limit = max(1, min(limit, 1000))
        self._send_json({
            "array_id": array_id,
            "history": state.store.get_array_history(array_id, limit=limit),
        })

    def _handle_summary(self, state: "FleetState", query: Dict[str, list]):
        try:
            filters = FleetFilters.from_query(query)
        except ValueError as exc:
            self._send_error_json(HTTPStatus.BAD_REQUEST, str(exc))
            return
        self._send_json(state.summarize(filters).to_dict())

    def _handle_refresh(self):
        state = self.fleet_state
        if not state:
            self._send_error_json(HTTPStatus.SERVICE_UNAVAILABLE, "Server not initialized.")
            return
        result = state.refresh_now(blocking=True)
        status = HTTPStatus.OK if result.ok else HTTPStatus.SERVICE_UNAVAILABLE
        self._send_json(result.to_dict(), status_code=status)

    def _handle_config(self):
        """Return current configuration for clients."""
        config_data = self.config or {}
        self._send_json({
            "deployment": config_data.get("deployment", {}),
            "refresh": config_data.get("refresh", {}),
            "feed": {"kind": config_data.get("feed", {}).get("kind", "demo")},
        })

    # --- Helper Methods ---

    @staticmethod
    def _array_payload(array) -> Dict[str, Any]:
        payload = array.to_dict()
        payload["assessment"] = assess(array).to_dict()
        return payload

    def _send_json(self, data: Any, *, status_code: HTTPStatus = HTTPStatus.OK):
        body = json.dumps(data).encode("utf-8")
        self.send_response(status_code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Cache-Control", "no-store, max-age=0")
        self._send_cors_headers()
        self.end_headers()
        self.wfile.write(body)

    def _send_error_json(self, status_code: HTTPStatus, message: str):
        self._send_json({"error": message}, status_code=status_code)

    def _send_cors_headers(self):
        self.send_header("Access-Control-Allow-Origin", "*")

    def _strip_prefix(self, path: str) -> Optional[str]:
        norm_prefix = (self.url_prefix or "").rstrip("/")
        if not norm_prefix:
            return path or "/"
        if not norm_prefix.startswith("/"):
            norm_prefix = f"/{norm_prefix}"
        if not path.startswith(norm_prefix):
            return None
        stripped = path[len(norm_prefix):] or "/"
        if not stripped.startswith("/"):
            stripped = "/" + stripped
        return stripped
