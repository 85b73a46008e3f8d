"""Output sinks for accepted festival records."""

import json
import threading
from pathlib import Path
from typing import Protocol

from sagre_scraper.core.exceptions import StorageError
from sagre_scraper.core.festival_model import FestivalRecord
from sagre_scraper.logging import get_logger

logger = get_logger(__name__)


class FestivalSink(Protocol):
    def emit(self, record: FestivalRecord) -> None: ...


class JsonlDatasetSink:
    """Append-only JSON Lines dataset, one festival per line.

    The pipeline calls ``emit`` from worker threads, so appends are serialized.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.count = 0
        self._lock = threading.Lock()

    @classmethod
    def in_storage(cls, storage_dir: str | Path, name: str = "festivals") -> "JsonlDatasetSink":
        return cls(Path(storage_dir) / "datasets" / f"{name}.jsonl")

    def emit(self, record: FestivalRecord) -> None:
        line = json.dumps(record.to_output(), ensure_ascii=False)
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with self.path.open("a", encoding="utf-8") as f:
                    f.write(line + "\n")
            except OSError as e:
                raise StorageError(f"Cannot write dataset: {e}", details={"path": str(self.path)}) from e
            self.count += 1
        logger.debug("festival_emitted", path=str(self.path), title=record.title)


class MemorySink:
    """Keeps records in a list; used for dry runs and tests."""

    def __init__(self) -> None:
        self.records: list[FestivalRecord] = []

    def emit(self, record: FestivalRecord) -> None:
        self.records.append(record)

    @property
    def count(self) -> int:
        return len(self.records)
