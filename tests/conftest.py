"""Shared fixtures: sample keys, configs and a counting stock codec."""

from __future__ import annotations

from pathlib import Path

import pytest

from rgbstock.config import GeneralConfig
from rgbstock.constants import Network
from rgbstock.descriptor import WalletDescriptor, XpubDerivable
from rgbstock.persistence import FsStockCodec
from rgbstock.stock import Stock

_XPUB = (
    "xpub661MyMwAqRbcFtXgS5sYJABqqG9YLmC4Q1Rdap9gSE8NqtwybGhePY2gZ29ESFjqJ"
    "oCu1Rupje8YtGqsefD265TMg7usUDFdp6W1EGMcet8"
)
_TPUB = (
    "tpubD6NzVbkrYhZ4XgiXtGrdW5XDAPFCL9h7we1vwNCpn8tGbBcgfVYjXyhWo4E1xkh56"
    "hjod1RhGjxbaTLV3X4FyWuejifB9jusQ46QzG87VKp"
)


class CountingCodec(FsStockCodec):
    """Filesystem codec that records how often it is used."""

    def __init__(self) -> None:
        super().__init__()
        self.loads = 0
        self.stores = 0

    def load(self, path: Path) -> Stock:
        self.loads += 1
        return super().load(path)

    def store(self, stock: Stock, path: Path) -> None:
        self.stores += 1
        super().store(stock, path)


@pytest.fixture()
def codec() -> CountingCodec:
    return CountingCodec()


@pytest.fixture()
def general(tmp_path: Path) -> GeneralConfig:
    return GeneralConfig(data_dir=tmp_path / "data", network=Network.TESTNET3)


@pytest.fixture()
def xpub() -> str:
    """Mainnet extended public key without origin or terminal."""
    return _XPUB


@pytest.fixture()
def tpub() -> str:
    """Testnet extended public key without origin or terminal."""
    return _TPUB


@pytest.fixture()
def tpub_derivable() -> str:
    """Testnet key with key origin and a ``<0;1>/*`` terminal."""
    return f"[d7e0a8b6/86h/1h/0h]{_TPUB}/<0;1>/*"


@pytest.fixture()
def tapret(tpub_derivable: str) -> WalletDescriptor:
    return WalletDescriptor.tapret(XpubDerivable.from_str(tpub_derivable))
