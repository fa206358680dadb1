"""JSON file sink for exported sales data."""

import json
import logging
from pathlib import Path
from typing import Any

from sales_ingest.sinks.serialization import serialize_value, to_dict

logger = logging.getLogger(__name__)


class JsonFileSink:
    """Write exported datasets as JSON files in one directory."""

    def __init__(self, output_dir: str | Path, pretty: bool = False) -> None:
        """Initialize JSON file sink.

        Parameters
        ----------
        output_dir : str | Path
            Directory to write JSON files.
        pretty : bool
            Pretty-print JSON output.
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.pretty = pretty
        self._counts: dict[str, int] = {}
        self._paths: dict[str, Path] = {}

    def write_batch(self, name: str, records: list[Any]) -> Path:
        """Write a list of records to ``<name>.json``."""
        data = [to_dict(record) for record in records]
        path = self._dump(name, data, ".json")
        self._counts[name] = len(records)
        return path

    def write_document(self, name: str, document: dict[str, Any], suffix: str = ".json") -> Path:
        """Write a single JSON object to ``<name><suffix>``.

        Parameters
        ----------
        name : str
            File stem, also the key in ``counts``.
        document : dict[str, Any]
            Object to serialize.
        suffix : str
            File extension, e.g. ".geojson" for GeoJSON documents.
        """
        path = self._dump(name, serialize_value(document), suffix)
        self._counts[name] = 1
        return path

    def _dump(self, name: str, data: Any, suffix: str) -> Path:
        file_path = self.output_dir / f"{name}{suffix}"
        with open(file_path, "w", encoding="utf-8") as f:
            if self.pretty:
                json.dump(data, f, indent=2, ensure_ascii=False, default=str)
            else:
                json.dump(data, f, ensure_ascii=False, default=str)
        self._paths[name] = file_path
        return file_path

    @property
    def counts(self) -> dict[str, int]:
        return dict(self._counts)

    def close(self) -> None:
        """Log a summary of written files."""
        logger.info("JSON files written to: %s", self.output_dir)
        for name, count in self._counts.items():
            logger.info("  %s: %d records", self._paths[name].name, count)
