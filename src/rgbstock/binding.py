"""Wallet binding: one handle over a stock and a wallet sharing a base path.

Both paths are derived from the same ``GeneralConfig`` in one call, so the
stock and the wallet it is paired with can never drift apart.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from rgbstock.persistence import FsStockCodec, StockCodec
from rgbstock.stock import Stock
from rgbstock.store import load_or_create
from rgbstock.wallet import RuntimeConstructor, WalletData, bp_runtime

if TYPE_CHECKING:
    from rgbstock.config import RgbArgs

logger = logging.getLogger(__name__)


@dataclass
class StoredWallet:
    """Stock and detached wallet state, each with its own persistence path.

    Owns no storage of its own: ``store()`` writes the stock and the wallet
    back to where they were loaded from.
    """

    stock_path: Path
    wallet_path: Path
    stock: Stock
    wallet: WalletData

    @classmethod
    def attach(
        cls, stock_path: Path, wallet_path: Path, stock: Stock, wallet: WalletData,
    ) -> StoredWallet:
        return cls(
            stock_path=Path(stock_path),
            wallet_path=Path(wallet_path),
            stock=stock,
            wallet=wallet,
        )

    def store(self, codec: StockCodec | None = None) -> None:
        (codec or FsStockCodec()).store(self.stock, self.stock_path)
        self.wallet.store(self.wallet_path)


def bind(
    args: RgbArgs,
    constructor: RuntimeConstructor,
    stock: Stock,
) -> StoredWallet:
    """Construct the wallet runtime and pair it with an already loaded stock."""
    stock_path = args.general.base_dir()
    runtime = constructor(
        args.general, args.descriptor_opts.descriptor(), args.resolver_config
    )
    wallet_path = runtime.path
    if args.verbose > 1:
        logger.info("Binding wallet at %s to stock at %s.", wallet_path, stock_path)
    return StoredWallet.attach(stock_path, wallet_path, stock, runtime.detach())


def rgb_wallet(
    args: RgbArgs,
    constructor: RuntimeConstructor | None = None,
    codec: StockCodec | None = None,
) -> StoredWallet:
    """Load (or create) the profile's stock, then bind the wallet to it."""
    stock = load_or_create(args.general.base_dir(), codec, verbose=args.verbose)
    return bind(args, constructor or bp_runtime, stock)


def rgb_wallet_from_stock(
    args: RgbArgs,
    stock: Stock,
    constructor: RuntimeConstructor | None = None,
) -> StoredWallet:
    """Bind the wallet to a stock the caller already holds. No disk read."""
    return bind(args, constructor or bp_runtime, stock)
