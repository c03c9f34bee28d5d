"""Stock persistence interface and the filesystem codec.

Defines the ``StockCodec`` Protocol that the ledger store depends on, and
the error classification at the codec boundary: a missing stock file is
``StockNotFoundError``, unreadable contents are ``StockDecodeError``, and
every other ``OSError`` passes through untouched.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from rgbstock.constants import STOCK_FILE_NAME

if TYPE_CHECKING:
    from rgbstock.stock import Stock

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exception hierarchy
# ---------------------------------------------------------------------------


class StockError(Exception):
    """Base exception for stock persistence."""


class StockNotFoundError(StockError):
    """No stock file exists at the requested location."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"stock file {path} not found")
        self.path = path


class StockDecodeError(StockError):
    """The stock file exists but its contents cannot be decoded."""


# ---------------------------------------------------------------------------
# Codec protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class StockCodec(Protocol):
    """Loads and stores a stock under a directory path."""

    def load(self, path: Path) -> Stock: ...

    def store(self, stock: Stock, path: Path) -> None: ...


class FsStockCodec:
    """JSON stock file named ``stock.json`` inside the profile directory."""

    def __init__(self, file_name: str = STOCK_FILE_NAME) -> None:
        self.file_name = file_name

    def file_path(self, path: Path) -> Path:
        return Path(path) / self.file_name

    def load(self, path: Path) -> Stock:
        from rgbstock.stock import Stock

        file_path = self.file_path(path)
        try:
            data = file_path.read_bytes()
        except FileNotFoundError as exc:
            raise StockNotFoundError(file_path) from exc
        return Stock.from_json(data)

    def store(self, stock: Stock, path: Path) -> None:
        """Write via a sibling temp file so a crash never truncates the stock."""
        file_path = self.file_path(path)
        tmp_path = file_path.with_name(file_path.name + ".tmp")
        try:
            tmp_path.write_text(stock.to_json(), encoding="utf-8")
            os.replace(tmp_path, file_path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise
        logger.debug("Stored stock to %s.", file_path)
