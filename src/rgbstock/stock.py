"""RGB stock: the authoritative record of schemata, contracts and witnesses.

Pure data model — no I/O. Persistence goes through ``rgbstock.persistence``.
Unlike a cache, the stock is never silently reset: ``from_json()`` raises
``StockDecodeError`` on anything it cannot fully understand.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from rgbstock.persistence import StockDecodeError

_SCHEMA_VERSION = 1


def _require(obj: dict[str, Any], key: str, kind: type, where: str) -> Any:
    value = obj.get(key)
    if not isinstance(value, kind):
        raise StockDecodeError(f"{where}: field '{key}' must be {kind.__name__}")
    return value


# ---------------------------------------------------------------------------
# ContractRecord
# ---------------------------------------------------------------------------


@dataclass
class ContractRecord:
    """History of a single contract: genesis plus applied transitions."""

    contract_id: str
    schema_id: str
    genesis: dict[str, Any] = field(default_factory=dict)
    transitions: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "contract_id": self.contract_id,
            "schema_id": self.schema_id,
            "genesis": self.genesis,
            "transitions": self.transitions,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContractRecord:
        where = "contract"
        return cls(
            contract_id=_require(data, "contract_id", str, where),
            schema_id=_require(data, "schema_id", str, where),
            genesis=_require(data, "genesis", dict, where),
            transitions=_require(data, "transitions", list, where),
        )


# ---------------------------------------------------------------------------
# WitnessRecord
# ---------------------------------------------------------------------------


@dataclass
class WitnessRecord:
    """A witness transaction anchoring one or more contract transitions."""

    txid: str
    contracts: list[str] = field(default_factory=list)
    height: int | None = None  # None while unmined

    def to_dict(self) -> dict[str, Any]:
        return {"txid": self.txid, "contracts": self.contracts, "height": self.height}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WitnessRecord:
        where = "witness"
        height = data.get("height")
        if height is not None and (isinstance(height, bool) or not isinstance(height, int)):
            raise StockDecodeError(f"{where}: field 'height' must be int or null")
        return cls(
            txid=_require(data, "txid", str, where),
            contracts=_require(data, "contracts", list, where),
            height=height,
        )


# ---------------------------------------------------------------------------
# Stock
# ---------------------------------------------------------------------------


@dataclass
class Stock:
    """In-memory stock. ``Stock()`` is the empty first-run stock."""

    schemata: dict[str, dict[str, Any]] = field(default_factory=dict)
    contracts: dict[str, ContractRecord] = field(default_factory=dict)
    witnesses: dict[str, WitnessRecord] = field(default_factory=dict)

    # -- mutations ------------------------------------------------------------

    def import_schema(self, schema_id: str, schema: dict[str, Any]) -> None:
        self.schemata[schema_id] = schema

    def import_contract(self, record: ContractRecord) -> None:
        """Add a contract. Its schema must already be known."""
        if record.schema_id not in self.schemata:
            raise KeyError(f"unknown schema {record.schema_id}")
        self.contracts[record.contract_id] = record

    def record_witness(self, txid: str, contract_id: str, height: int | None = None) -> None:
        """Attach a witness to a contract, updating the mining height if known."""
        rec = self.witnesses.setdefault(txid, WitnessRecord(txid=txid))
        if contract_id not in rec.contracts:
            rec.contracts.append(contract_id)
        if height is not None:
            rec.height = height

    # -- serialization --------------------------------------------------------

    def to_json(self) -> str:
        return json.dumps({
            "v": _SCHEMA_VERSION,
            "schemata": self.schemata,
            "contracts": {
                cid: rec.to_dict() for cid, rec in self.contracts.items()
            },
            "witnesses": {
                txid: rec.to_dict() for txid, rec in self.witnesses.items()
            },
        }, indent=2, sort_keys=True)

    @classmethod
    def from_json(cls, data: str | bytes) -> Stock:
        """Deserialize from JSON. Raises ``StockDecodeError`` on any defect."""
        try:
            obj = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as exc:
            raise StockDecodeError(f"stock is not valid JSON: {exc}") from exc

        if not isinstance(obj, dict):
            raise StockDecodeError("stock root must be an object")
        version = obj.get("v")
        if version != _SCHEMA_VERSION:
            raise StockDecodeError(f"unsupported stock version {version!r}")

        schemata = _require(obj, "schemata", dict, "stock")
        raw_contracts = _require(obj, "contracts", dict, "stock")
        raw_witnesses = _require(obj, "witnesses", dict, "stock")

        for schema_id, schema in schemata.items():
            if not isinstance(schema, dict):
                raise StockDecodeError(f"schema {schema_id} is not an object")

        contracts: dict[str, ContractRecord] = {}
        for cid, rec in raw_contracts.items():
            if not isinstance(rec, dict):
                raise StockDecodeError(f"contract {cid} is not an object")
            contract = ContractRecord.from_dict(rec)
            if contract.contract_id != cid:
                raise StockDecodeError(
                    f"contract filed as {cid} carries id {contract.contract_id}"
                )
            if contract.schema_id not in schemata:
                raise StockDecodeError(
                    f"contract {cid} refers to unknown schema {contract.schema_id}"
                )
            contracts[cid] = contract

        witnesses: dict[str, WitnessRecord] = {}
        for txid, rec in raw_witnesses.items():
            if not isinstance(rec, dict):
                raise StockDecodeError(f"witness {txid} is not an object")
            witness = WitnessRecord.from_dict(rec)
            if witness.txid != txid:
                raise StockDecodeError(f"witness filed as {txid} carries txid {witness.txid}")
            witnesses[txid] = witness

        return cls(schemata=schemata, contracts=contracts, witnesses=witnesses)
