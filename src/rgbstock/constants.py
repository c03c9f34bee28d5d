"""Constants for RGB stock and wallet persistence."""

from enum import Enum
from pathlib import Path


STOCK_FILE_NAME = "stock.json"
WALLET_FILE_NAME = "wallet.json"
DEFAULT_WALLET_NAME = "default"
DEFAULT_DATA_DIR = Path("~/.rgb")
DEFAULT_RESOLVER_TIMEOUT = 30.0  # seconds, per blocking backend call


class Network(str, Enum):
    """Bitcoin networks a stock, wallet and resolver must agree on."""

    MAINNET = "mainnet"
    TESTNET3 = "testnet3"
    TESTNET4 = "testnet4"
    SIGNET = "signet"
    REGTEST = "regtest"

    @property
    def genesis_hash(self) -> str:
        return _GENESIS_HASHES[self]

    @property
    def is_testnet(self) -> bool:
        return self is not Network.MAINNET

    @classmethod
    def from_str(cls, name: str) -> "Network":
        key = name.strip().lower()
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"unknown network '{name}'") from None


_ALIASES = {
    "bitcoin": "mainnet",
    "testnet": "testnet3",
}

_GENESIS_HASHES = {
    Network.MAINNET: "000000000019d6689c085ae165831e934ff763ae46a2a6c172b3f1b60a8ce26f",
    Network.TESTNET3: "000000000933ea01ad0ee984209779baaec3ced90fa3f408719526f8d77f4943",
    Network.TESTNET4: "00000000da84f2bafbbc53dee25a72ae507ff4914b867c565be350b0da8bf043",
    Network.SIGNET: "00000008819873e925422c1ff0f99f7cc9bbb232af63a077a480a3633bee1ef6",
    Network.REGTEST: "0f9188f13cb7b2c71f2a335e3a4fc328bf5beb436012afca590b1a11466e2206",
}
