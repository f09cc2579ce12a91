from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from payments_orchestrator.storage.store import InMemoryStore, T
from shared.logging import get_logger
from shared.utils import utc_now

logger = get_logger(__name__)


class JsonFileStore(InMemoryStore[T]):
    """In-memory store mirrored to ``<directory>/<name>.json``.

    Every ``save`` rewrites the file through a temp file and ``os.replace`` so a
    crash never leaves a half-written document behind.
    """

    def __init__(self, name: str, model: type[T], directory: str | Path) -> None:
        super().__init__(name)
        self._model = model
        self._path = Path(directory) / f"{name}.json"
        self._initialized = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        if self._initialized:
            return
        self._initialized = True
        self._path.parent.mkdir(parents=True, exist_ok=True)
        for raw_item in self._read_items():
            try:
                item = self._model.model_validate(raw_item)
            except ValidationError:
                logger.warning(
                    "store_item_skipped",
                    extra={"extra_fields": {"store": self.name, "path": str(self._path)}},
                )
                continue
            super().save(item)
        logger.info(
            "store_loaded",
            extra={"extra_fields": {"store": self.name, "items": self.count()}},
        )

    def save(self, item: T) -> None:
        super().save(item)
        self.flush()

    def flush(self) -> None:
        document = {
            "items": [item.model_dump(mode="json") for item in self._items.values()],
            "saved_at": utc_now().isoformat(),
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(
            prefix=f".{self.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, ensure_ascii=False, indent=2)
            os.replace(temp_name, self._path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

    def _read_items(self) -> list[dict[str, Any]]:
        if not self._path.exists():
            return []
        text = self._path.read_text(encoding="utf-8")
        if not text.strip():
            return []
        try:
            document = json.loads(text)
        except json.JSONDecodeError:
            logger.warning(
                "store_file_corrupt",
                extra={"extra_fields": {"store": self.name, "path": str(self._path)}},
            )
            return []
        items = document.get("items") if isinstance(document, dict) else None
        if not isinstance(items, list):
            logger.warning(
                "store_file_unexpected_shape",
                extra={"extra_fields": {"store": self.name, "path": str(self._path)}},
            )
            return []
        return [item for item in items if isinstance(item, dict)]
