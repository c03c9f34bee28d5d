"""Wallet descriptors: tapret-key-only and wpkh over a derivable xpub.

The two descriptor flags are mutually exclusive. ``DescriptorOpts`` (see
``rgbstock.config``) folds them into a single ``WalletDescriptor`` once, so
downstream code never has to reason about flag precedence.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

_BASE58 = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

_XPUB_RE = re.compile(
    r"^(?:\[(?P<fp>[0-9a-fA-F]{8})(?P<origin>(?:/\d+[hH']?)*)\])?"
    r"(?P<key>[xt]pub[" + _BASE58 + r"]{107})"
    r"(?P<terminal>(?:/(?:\d+|<\d+;\d+>))*(?:/\*)?)$"
)


class DescriptorError(ValueError):
    """Raised when descriptor options are invalid or conflicting."""


@dataclass(frozen=True)
class XpubDerivable:
    """Extended public key with optional key origin and derivation terminal.

    String form: ``[fingerprint/origin/path]xpub.../<0;1>/*``.
    """

    xpub: str
    fingerprint: str | None = None
    origin: str = ""
    terminal: str = ""

    @classmethod
    def from_str(cls, value: str) -> XpubDerivable:
        m = _XPUB_RE.match(value.strip())
        if m is None:
            raise ValueError(f"invalid derivable xpub '{value}'")
        fp = m.group("fp")
        return cls(
            xpub=m.group("key"),
            fingerprint=fp.lower() if fp else None,
            origin=(m.group("origin") or "").replace("H", "h").replace("'", "h"),
            terminal=m.group("terminal") or "",
        )

    @property
    def is_testnet(self) -> bool:
        return self.xpub.startswith("tpub")

    def __str__(self) -> str:
        prefix = f"[{self.fingerprint}{self.origin}]" if self.fingerprint else ""
        return f"{prefix}{self.xpub}{self.terminal}"


class DescriptorKind(str, Enum):
    NONE = "none"
    TAPRET = "tapret"
    WPKH = "wpkh"


@dataclass(frozen=True)
class WalletDescriptor:
    """Tagged descriptor variant: none, tapret(KEY) or wpkh(KEY)."""

    kind: DescriptorKind = DescriptorKind.NONE
    key: XpubDerivable | None = None

    def __post_init__(self) -> None:
        if (self.kind is DescriptorKind.NONE) != (self.key is None):
            raise DescriptorError(
                f"descriptor kind '{self.kind.value}' inconsistent with key presence"
            )

    @classmethod
    def none(cls) -> WalletDescriptor:
        return cls()

    @classmethod
    def tapret(cls, key: XpubDerivable) -> WalletDescriptor:
        return cls(DescriptorKind.TAPRET, key)

    @classmethod
    def wpkh(cls, key: XpubDerivable) -> WalletDescriptor:
        return cls(DescriptorKind.WPKH, key)

    @classmethod
    def parse(cls, value: str) -> WalletDescriptor:
        """Parse the rendered ``tr(KEY)`` / ``wpkh(KEY)`` form."""
        value = value.strip()
        for prefix, kind in (("tr(", DescriptorKind.TAPRET), ("wpkh(", DescriptorKind.WPKH)):
            if value.startswith(prefix) and value.endswith(")"):
                return cls(kind, XpubDerivable.from_str(value[len(prefix):-1]))
        raise DescriptorError(f"unsupported descriptor '{value}'")

    def is_some(self) -> bool:
        return self.kind is not DescriptorKind.NONE

    def __str__(self) -> str:
        if self.kind is DescriptorKind.TAPRET:
            return f"tr({self.key})"
        if self.kind is DescriptorKind.WPKH:
            return f"wpkh({self.key})"
        return ""
