"""Inventory file collector.

Reads the fleet from a YAML or JSON file exported by an inventory system.
The file holds either a top-level list of arrays or a mapping with an
``arrays`` key.
"""

from __future__ import annotations

import datetime as dt
import json
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from .base import BaseCollector, CollectorError


class InventoryFileCollector(BaseCollector):
    """Collector that re-reads an inventory file on every refresh."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    @property
    def name(self) -> str:
        return "inventory"

    @property
    def display_name(self) -> str:
        return "Inventory File"

    def is_available(self) -> bool:
        return self.path.is_file()

    def collect(self) -> Dict[str, Any]:
        """Load the inventory file.

        Raises:
            CollectorError: If the file is missing or does not parse.
        """
        if not self.path.exists():
            raise CollectorError(self.name, f"Inventory file not found: {self.path}")
        try:
            text = self.path.read_text(encoding="utf-8")
            if self.path.suffix.lower() == ".json":
                data = json.loads(text)
            else:
                data = yaml.safe_load(text)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise CollectorError(self.name, f"Unable to read {self.path}: {e}", e)

        if isinstance(data, list):
            data = {"arrays": data}
        if not isinstance(data, dict):
            raise CollectorError(self.name, f"Unexpected inventory format in {self.path}")

        data.setdefault("meta", {})
        data["meta"].update({
            "source": str(self.path),
            "collector": self.name,
            "generated_at": dt.datetime.utcnow().replace(microsecond=0).isoformat() + "Z",
        })
        data.setdefault("arrays", [])
        return data
