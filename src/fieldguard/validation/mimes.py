"""Mime type to file extension lookup for the "filetype" rule.

The lookup table is a JSON object mapping an extension to one mime type or
a list of mime types. It is read once per resolver, on first use.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_MIMES_PATH = Path(__file__).parent / "data" / "mimes.json"


class MimeTypeResolver:
    """Resolves an uploaded file's mime type to its candidate extensions.

    Usage:
        resolver = MimeTypeResolver()
        await resolver.load()
        resolver.extensions_for("image/png")  # ["png"]
    """

    def __init__(self, path: Path | None = None):
        self.path = Path(path) if path else DEFAULT_MIMES_PATH
        self._table: dict[str, list[str]] | None = None

    @property
    def loaded(self) -> bool:
        return self._table is not None

    async def load(self) -> None:
        """Read the lookup table without blocking the event loop."""
        if self._table is None:
            table = await asyncio.to_thread(self._read)
            if self._table is None:
                self._table = table

    def extensions_for(self, mime_type: str) -> list[str]:
        """Return every extension associated with the mime type.

        Reads the table synchronously if load() was never awaited.
        """
        if self._table is None:
            self._table = self._read()
        return [
            extension
            for extension, types in self._table.items()
            if mime_type in types
        ]

    def _read(self) -> dict[str, list[str]]:
        with self.path.open() as fh:
            raw: dict[str, Any] = json.load(fh)
        table = {
            extension.lower(): types if isinstance(types, list) else [types]
            for extension, types in raw.items()
        }
        logger.debug("Loaded %d mime type mappings from %s", len(table), self.path)
        return table
