"""Configuration — plain frozen dataclasses, no env-var loading.

The host application (usually a CLI) builds these from its own parsed
arguments and passes them to the stock, wallet and resolver helpers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from rgbstock.constants import (
    DEFAULT_DATA_DIR,
    DEFAULT_RESOLVER_TIMEOUT,
    DEFAULT_WALLET_NAME,
    Network,
)
from rgbstock.descriptor import DescriptorError, WalletDescriptor, XpubDerivable

if TYPE_CHECKING:
    from rgbstock.binding import StoredWallet
    from rgbstock.persistence import StockCodec
    from rgbstock.resolver import AnyResolver
    from rgbstock.stock import Stock
    from rgbstock.store import StoredStock
    from rgbstock.wallet import RuntimeConstructor


@dataclass(frozen=True)
class GeneralConfig:
    data_dir: Path = DEFAULT_DATA_DIR
    network: Network = Network.TESTNET3
    wallet: str = DEFAULT_WALLET_NAME

    def base_dir(self) -> Path:
        """Per-network profile directory holding the stock and wallets."""
        return Path(self.data_dir).expanduser() / self.network.value


@dataclass(frozen=True)
class ResolverConfig:
    """Mutually exclusive resolver endpoints. Exactly one should be set."""

    electrum: str | None = None
    esplora: str | None = None
    mempool: str | None = None
    timeout: float = DEFAULT_RESOLVER_TIMEOUT

    def configured(self) -> list[tuple[str, str]]:
        """Return ``(kind, url)`` pairs for every non-empty endpoint."""
        pairs = (
            ("electrum", self.electrum),
            ("esplora", self.esplora),
            ("mempool", self.mempool),
        )
        return [(kind, url.strip()) for kind, url in pairs if url and url.strip()]


@dataclass(frozen=True)
class DescriptorOpts:
    """Raw ``--tapret-key-only`` / ``--wpkh`` flag values."""

    tapret_key_only: str | None = None
    wpkh: str | None = None

    def is_some(self) -> bool:
        return bool(self.tapret_key_only) or bool(self.wpkh)

    def descriptor(self) -> WalletDescriptor:
        """Fold the flags into one descriptor. Both set is an error."""
        if self.tapret_key_only and self.wpkh:
            raise DescriptorError(
                "only one of --tapret-key-only and --wpkh may be given"
            )
        if self.tapret_key_only:
            return WalletDescriptor.tapret(XpubDerivable.from_str(self.tapret_key_only))
        if self.wpkh:
            return WalletDescriptor.wpkh(XpubDerivable.from_str(self.wpkh))
        return WalletDescriptor.none()


@dataclass(frozen=True)
class RgbArgs:
    """Everything a stock/wallet/resolver command needs, in one value.

    ``verbose`` only affects diagnostics, never control flow.
    """

    general: GeneralConfig = field(default_factory=GeneralConfig)
    resolver_config: ResolverConfig = field(default_factory=ResolverConfig)
    descriptor_opts: DescriptorOpts = field(default_factory=DescriptorOpts)
    verbose: int = 0

    def stock(self, codec: StockCodec | None = None) -> StoredStock:
        from rgbstock.store import rgb_stock

        return rgb_stock(self.general, codec, verbose=self.verbose)

    def wallet(
        self,
        constructor: RuntimeConstructor | None = None,
        codec: StockCodec | None = None,
    ) -> StoredWallet:
        from rgbstock.binding import rgb_wallet

        return rgb_wallet(self, constructor, codec)

    def wallet_from_stock(
        self,
        stock: Stock,
        constructor: RuntimeConstructor | None = None,
    ) -> StoredWallet:
        from rgbstock.binding import rgb_wallet_from_stock

        return rgb_wallet_from_stock(self, stock, constructor)

    def resolver(self) -> AnyResolver:
        from rgbstock.resolver import select_resolver

        return select_resolver(
            self.resolver_config, self.general.network, verbose=self.verbose
        )
