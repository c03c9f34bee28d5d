"""Tests for the Stock model, its strict JSON form and the filesystem codec."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from rgbstock.persistence import FsStockCodec, StockCodec, StockDecodeError, StockNotFoundError
from rgbstock.stock import ContractRecord, Stock, WitnessRecord


def _sample_stock() -> Stock:
    stock = Stock()
    stock.import_schema("schema-nia", {"name": "NonInflatableAsset"})
    stock.import_contract(
        ContractRecord(
            contract_id="rgb:abc",
            schema_id="schema-nia",
            genesis={"ticker": "TST", "supply": 1000},
        )
    )
    stock.record_witness("txid-1", "rgb:abc")
    return stock


# ---------------------------------------------------------------------------
# Stock model
# ---------------------------------------------------------------------------


class TestStock:
    def test_default_is_empty(self) -> None:
        stock = Stock()
        assert stock.schemata == {}
        assert stock.contracts == {}
        assert stock.witnesses == {}

    def test_defaults_are_equal(self) -> None:
        assert Stock() == Stock()

    def test_import_contract_requires_schema(self) -> None:
        stock = Stock()
        with pytest.raises(KeyError):
            stock.import_contract(ContractRecord(contract_id="c", schema_id="missing"))

    def test_record_witness_deduplicates_contracts(self) -> None:
        stock = _sample_stock()
        stock.record_witness("txid-1", "rgb:abc")
        assert stock.witnesses["txid-1"].contracts == ["rgb:abc"]

    def test_record_witness_sets_height_once_mined(self) -> None:
        stock = _sample_stock()
        assert stock.witnesses["txid-1"].height is None
        stock.record_witness("txid-1", "rgb:abc", height=840_000)
        assert stock.witnesses["txid-1"].height == 840_000


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


class TestStockSerialization:
    def test_json_has_version(self) -> None:
        assert json.loads(Stock().to_json())["v"] == 1

    def test_roundtrip(self) -> None:
        stock = _sample_stock()
        assert Stock.from_json(stock.to_json()) == stock

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(StockDecodeError, match="not valid JSON"):
            Stock.from_json("{not json")

    def test_non_object_raises(self) -> None:
        with pytest.raises(StockDecodeError, match="root must be an object"):
            Stock.from_json("[1, 2]")

    def test_unknown_version_raises(self) -> None:
        with pytest.raises(StockDecodeError, match="unsupported stock version"):
            Stock.from_json(json.dumps({"v": 99, "schemata": {}, "contracts": {}, "witnesses": {}}))

    def test_missing_section_raises(self) -> None:
        with pytest.raises(StockDecodeError, match="witnesses"):
            Stock.from_json(json.dumps({"v": 1, "schemata": {}, "contracts": {}}))

    def test_bad_contract_raises(self) -> None:
        data = json.dumps({"v": 1, "schemata": {}, "contracts": {"c": {"contract_id": 5}}, "witnesses": {}})
        with pytest.raises(StockDecodeError, match="contract_id"):
            Stock.from_json(data)

    def test_bad_witness_height_raises(self) -> None:
        data = json.dumps({
            "v": 1, "schemata": {}, "contracts": {},
            "witnesses": {"t": {"txid": "t", "contracts": [], "height": "tall"}},
        })
        with pytest.raises(StockDecodeError, match="height"):
            Stock.from_json(data)

    def test_contract_key_mismatch_raises(self) -> None:
        data = json.dumps({
            "v": 1, "schemata": {"s": {}},
            "contracts": {"A": {"contract_id": "B", "schema_id": "s", "genesis": {}, "transitions": []}},
            "witnesses": {},
        })
        with pytest.raises(StockDecodeError, match="filed as A"):
            Stock.from_json(data)

    def test_contract_unknown_schema_raises(self) -> None:
        data = json.dumps({
            "v": 1, "schemata": {},
            "contracts": {"c": {"contract_id": "c", "schema_id": "s", "genesis": {}, "transitions": []}},
            "witnesses": {},
        })
        with pytest.raises(StockDecodeError, match="unknown schema"):
            Stock.from_json(data)

    def test_schema_not_object_raises(self) -> None:
        data = json.dumps({"v": 1, "schemata": {"s": [1]}, "contracts": {}, "witnesses": {}})
        with pytest.raises(StockDecodeError, match="schema s"):
            Stock.from_json(data)

    def test_witness_key_mismatch_raises(self) -> None:
        data = json.dumps({
            "v": 1, "schemata": {}, "contracts": {},
            "witnesses": {"t1": {"txid": "t2", "contracts": [], "height": None}},
        })
        with pytest.raises(StockDecodeError, match="filed as t1"):
            Stock.from_json(data)

    def test_bool_witness_height_raises(self) -> None:
        data = json.dumps({
            "v": 1, "schemata": {}, "contracts": {},
            "witnesses": {"t": {"txid": "t", "contracts": [], "height": True}},
        })
        with pytest.raises(StockDecodeError, match="height"):
            Stock.from_json(data)

    def test_deeply_nested_json_raises(self) -> None:
        with pytest.raises(StockDecodeError):
            Stock.from_json("[" * 200_000)

    def test_binary_garbage_raises(self) -> None:
        with pytest.raises(StockDecodeError):
            Stock.from_json(b"\xff\xfe\x00garbage")

    def test_witness_record_from_dict(self) -> None:
        rec = WitnessRecord.from_dict({"txid": "t", "contracts": ["c"], "height": 7})
        assert rec == WitnessRecord(txid="t", contracts=["c"], height=7)


# ---------------------------------------------------------------------------
# FsStockCodec
# ---------------------------------------------------------------------------


class TestFsStockCodec:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(FsStockCodec(), StockCodec)

    def test_missing_file_is_not_found(self, tmp_path: Path) -> None:
        with pytest.raises(StockNotFoundError) as exc_info:
            FsStockCodec().load(tmp_path)
        assert exc_info.value.path == tmp_path / "stock.json"
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_store_then_load(self, tmp_path: Path) -> None:
        codec = FsStockCodec()
        stock = _sample_stock()
        codec.store(stock, tmp_path)
        assert codec.load(tmp_path) == stock

    def test_store_leaves_no_temp_file(self, tmp_path: Path) -> None:
        FsStockCodec().store(Stock(), tmp_path)
        assert sorted(p.name for p in tmp_path.iterdir()) == ["stock.json"]

    def test_custom_file_name(self, tmp_path: Path) -> None:
        codec = FsStockCodec(file_name="ledger.json")
        codec.store(Stock(), tmp_path)
        assert (tmp_path / "ledger.json").exists()

    def test_directory_in_place_of_file_is_os_error(self, tmp_path: Path) -> None:
        (tmp_path / "stock.json").mkdir()
        with pytest.raises(OSError) as exc_info:
            FsStockCodec().load(tmp_path)
        assert not isinstance(exc_info.value, FileNotFoundError)

    def test_failed_write_removes_temp_file(self, tmp_path: Path) -> None:
        codec = FsStockCodec()
        codec.store(Stock(), tmp_path)
        original = (tmp_path / "stock.json").read_bytes()

        def _partial_write(self, data, encoding=None):
            self.write_bytes(b"{")
            raise OSError(28, "No space left on device")

        with patch.object(Path, "write_text", _partial_write):
            with pytest.raises(OSError, match="No space left"):
                codec.store(_sample_stock(), tmp_path)

        assert sorted(p.name for p in tmp_path.iterdir()) == ["stock.json"]
        assert (tmp_path / "stock.json").read_bytes() == original

    def test_failed_replace_removes_temp_file(self, tmp_path: Path) -> None:
        with patch("rgbstock.persistence.os.replace", side_effect=PermissionError(13, "denied")):
            with pytest.raises(PermissionError):
                FsStockCodec().store(Stock(), tmp_path)
        assert list(tmp_path.iterdir()) == []
