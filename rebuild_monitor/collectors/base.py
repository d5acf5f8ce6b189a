"""Base collector interface for fleet data sources."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..data.models import DiskArray, InvalidArrayError


class BaseCollector(ABC):
    """Abstract base class for fleet data collectors.

    All collectors must implement this interface to provide a consistent
    way to obtain array snapshots from various sources (inventory files,
    telemetry endpoints, etc.).
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this collector.

        Returns:
            A short, lowercase identifier (e.g., 'inventory', 'telemetry')
        """
        pass

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable name for UI display."""
        pass

    @abstractmethod
    def collect(self) -> Dict[str, Any]:
        """Fetch the current fleet from this source.

        Returns:
            Dictionary with an 'arrays' list of array records.

        Raises:
            CollectorError: If data collection fails.
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this collector can run (source reachable, file present)."""
        pass

    def collect_arrays(self) -> List[DiskArray]:
        """Collect and parse the fleet into arrays.

        Raises:
            CollectorError: If collection fails or a record is malformed.
        """
        payload = self.collect()
        records = payload.get("arrays") if isinstance(payload, dict) else payload
        if not isinstance(records, list):
            raise CollectorError(self.name, "Payload has no 'arrays' list")
        try:
            return [DiskArray.from_dict(r) for r in records]
        except InvalidArrayError as e:
            raise CollectorError(self.name, f"Malformed array record: {e}", e)
        except (TypeError, AttributeError, ValueError) as e:
            raise CollectorError(self.name, f"Malformed array record: {e!r}", e)

    def close(self) -> None:
        """Release any resources held by the collector."""


class CollectorError(Exception):
    """Exception raised when a collector fails to collect data."""

    def __init__(self, collector_name: str, message: str, cause: Optional[Exception] = None):
        self.collector_name = collector_name
        self.cause = cause
        super().__init__(f"[{collector_name}] {message}")
