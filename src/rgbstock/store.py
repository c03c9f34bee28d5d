"""Ledger store: load the stock from disk, creating it on first run."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from rgbstock.persistence import FsStockCodec, StockCodec, StockNotFoundError
from rgbstock.stock import Stock

if TYPE_CHECKING:
    from rgbstock.config import GeneralConfig

logger = logging.getLogger(__name__)


@dataclass
class StoredStock:
    """A stock attached to the directory it is persisted under."""

    path: Path
    stock: Stock

    @classmethod
    def attach(cls, path: Path, stock: Stock) -> StoredStock:
        return cls(path=Path(path), stock=stock)

    def store(self, codec: StockCodec | None = None) -> None:
        (codec or FsStockCodec()).store(self.stock, self.path)


def load_or_create(
    path: Path,
    codec: StockCodec | None = None,
    verbose: int = 0,
) -> Stock:
    """Load the stock at ``path``; if it is absent, create and persist a new one.

    Only a missing stock file triggers creation. A damaged file, or any other
    I/O failure, propagates unchanged and the file is left as it was.
    """
    codec = codec or FsStockCodec()
    path = Path(path)
    if verbose > 1:
        logger.info("Loading stock from %s ...", path)

    try:
        stock = codec.load(path)
    except StockNotFoundError:
        if verbose > 1:
            logger.info("Stock file is absent, creating a new one ...")
        stock = Stock()
        path.mkdir(parents=True, exist_ok=True)
        codec.store(stock, path)
        if verbose > 1:
            logger.info("Stock created successfully.")
        return stock
    except Exception:
        logger.error("Stock file at %s is damaged, failing.", path)
        raise

    if verbose > 1:
        logger.info("Stock loaded successfully.")
    return stock


def rgb_stock(
    general: GeneralConfig,
    codec: StockCodec | None = None,
    verbose: int = 0,
) -> StoredStock:
    """Load (or create) the stock of the configured profile and attach its path."""
    stock_path = general.base_dir()
    stock = load_or_create(stock_path, codec, verbose=verbose)
    return StoredStock.attach(stock_path, stock)
