"""Wallet runtime: the descriptor-bound wallet state kept next to the stock.

``bp_runtime`` is the default runtime constructor used by the binding
helpers. Any callable with the same signature returning an object that
satisfies ``WalletRuntime`` can replace it.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Protocol, runtime_checkable

from rgbstock.constants import WALLET_FILE_NAME, Network
from rgbstock.descriptor import WalletDescriptor

if TYPE_CHECKING:
    from rgbstock.config import GeneralConfig, ResolverConfig

logger = logging.getLogger(__name__)


class WalletError(Exception):
    """Raised when a wallet cannot be created or loaded."""


# ---------------------------------------------------------------------------
# WalletData
# ---------------------------------------------------------------------------


@dataclass
class WalletData:
    """Detached wallet state: what gets persisted as ``wallet.json``."""

    name: str
    network: Network
    descriptor: str
    last_indexes: dict[str, int] = field(default_factory=dict)

    def next_index(self, keychain: int = 0) -> int:
        """Reserve and return the next unused derivation index for ``keychain``."""
        key = str(keychain)
        index = self.last_indexes.get(key, 0)
        self.last_indexes[key] = index + 1
        return index

    def to_json(self) -> str:
        return json.dumps({
            "name": self.name,
            "network": self.network.value,
            "descriptor": self.descriptor,
            "last_indexes": self.last_indexes,
        }, indent=2)

    @classmethod
    def from_json(cls, data: str | bytes) -> WalletData:
        try:
            obj = json.loads(data)
            return cls(
                name=str(obj["name"]),
                network=Network.from_str(obj["network"]),
                descriptor=str(obj["descriptor"]),
                last_indexes={str(k): int(v) for k, v in obj.get("last_indexes", {}).items()},
            )
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as exc:
            raise WalletError(f"wallet data is damaged: {exc}") from exc

    def store(self, path: Path) -> None:
        file_path = Path(path) / WALLET_FILE_NAME
        tmp_path = file_path.with_name(file_path.name + ".tmp")
        try:
            tmp_path.write_text(self.to_json(), encoding="utf-8")
            os.replace(tmp_path, file_path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise


# ---------------------------------------------------------------------------
# Runtime protocol and filesystem runtime
# ---------------------------------------------------------------------------


@runtime_checkable
class WalletRuntime(Protocol):
    """What the binding needs from a wallet runtime."""

    @property
    def path(self) -> Path: ...

    def detach(self) -> WalletData: ...


RuntimeConstructor = Callable[
    ["GeneralConfig", WalletDescriptor, "ResolverConfig"], WalletRuntime
]


class FsWalletRuntime:
    """Wallet runtime persisted in its own directory under the profile dir."""

    def __init__(
        self,
        path: Path,
        data: WalletData,
        resolver: ResolverConfig | None = None,
    ) -> None:
        self._path = Path(path)
        self._data = data
        self._resolver = resolver

    @property
    def path(self) -> Path:
        return self._path

    @property
    def data(self) -> WalletData:
        return self._data

    def detach(self) -> WalletData:
        return self._data

    @classmethod
    def load(cls, path: Path, resolver: ResolverConfig | None = None) -> FsWalletRuntime:
        file_path = Path(path) / WALLET_FILE_NAME
        try:
            raw = file_path.read_bytes()
        except FileNotFoundError as exc:
            raise WalletError(
                f"no descriptor specified and no wallet found at {path}"
            ) from exc
        return cls(path, WalletData.from_json(raw), resolver)


def bp_runtime(
    general: GeneralConfig,
    descriptor: WalletDescriptor,
    resolver: ResolverConfig,
) -> FsWalletRuntime:
    """Open the configured wallet, creating it when a descriptor is given.

    Without a descriptor the wallet must already exist on disk. With one,
    an existing wallet is reused only if it was made from the same
    descriptor.
    """
    wallet_path = general.base_dir() / general.wallet

    if not descriptor.is_some():
        runtime = FsWalletRuntime.load(wallet_path, resolver)
        _check_network(runtime.data, general.network)
        return runtime

    descr = str(descriptor)
    if (wallet_path / WALLET_FILE_NAME).exists():
        runtime = FsWalletRuntime.load(wallet_path, resolver)
        _check_network(runtime.data, general.network)
        if runtime.data.descriptor != descr:
            raise WalletError(
                f"wallet '{general.wallet}' already exists with a different descriptor"
            )
        return runtime

    if descriptor.key is not None and descriptor.key.is_testnet != general.network.is_testnet:
        raise WalletError(
            f"descriptor key does not match network {general.network.value}"
        )
    data = WalletData(name=general.wallet, network=general.network, descriptor=descr)
    wallet_path.mkdir(parents=True, exist_ok=True)
    data.store(wallet_path)
    logger.info("Created wallet '%s' at %s.", general.wallet, wallet_path)
    return FsWalletRuntime(wallet_path, data, resolver)


def _check_network(data: WalletData, network: Network) -> None:
    if data.network is not network:
        raise WalletError(
            f"wallet '{data.name}' belongs to {data.network.value}, not {network.value}"
        )
