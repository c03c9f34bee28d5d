"""rgbstock — durable RGB stock and wallet state plus resolver selection.

Loads or creates the contract stock of a profile, binds it to a
descriptor wallet sharing the same base directory, and picks the single
configured blockchain resolver after checking its network.
"""

__version__ = "0.1.0"

from rgbstock.constants import Network, STOCK_FILE_NAME, WALLET_FILE_NAME
from rgbstock.descriptor import DescriptorError, DescriptorKind, WalletDescriptor, XpubDerivable
from rgbstock.config import DescriptorOpts, GeneralConfig, ResolverConfig, RgbArgs
from rgbstock.persistence import FsStockCodec, StockCodec, StockDecodeError, StockError, StockNotFoundError
from rgbstock.stock import ContractRecord, Stock, WitnessRecord
from rgbstock.store import StoredStock, load_or_create, rgb_stock
from rgbstock.wallet import FsWalletRuntime, WalletData, WalletError, WalletRuntime, bp_runtime
from rgbstock.binding import StoredWallet, bind, rgb_wallet, rgb_wallet_from_stock
from rgbstock.resolver import (
    AnyResolver,
    ResolverArityError,
    ResolverConnectionError,
    ResolverError,
    ResolverNetworkMismatchError,
    ResolverResponseError,
    ResolverTimeoutError,
    select_resolver,
)

__all__ = [
    "Network",
    "STOCK_FILE_NAME",
    "WALLET_FILE_NAME",
    "DescriptorError",
    "DescriptorKind",
    "WalletDescriptor",
    "XpubDerivable",
    "DescriptorOpts",
    "GeneralConfig",
    "ResolverConfig",
    "RgbArgs",
    "FsStockCodec",
    "StockCodec",
    "StockDecodeError",
    "StockError",
    "StockNotFoundError",
    "ContractRecord",
    "Stock",
    "WitnessRecord",
    "StoredStock",
    "load_or_create",
    "rgb_stock",
    "FsWalletRuntime",
    "WalletData",
    "WalletError",
    "WalletRuntime",
    "bp_runtime",
    "StoredWallet",
    "bind",
    "rgb_wallet",
    "rgb_wallet_from_stock",
    "AnyResolver",
    "ResolverArityError",
    "ResolverConnectionError",
    "ResolverError",
    "ResolverNetworkMismatchError",
    "ResolverResponseError",
    "ResolverTimeoutError",
    "select_resolver",
]
