"""Tests for the key-value storage backends."""

import os

import pytest

from financia.services.storage import (
    CollectionKind,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    StorageWriteError,
    collection_key,
)
from financia.services.storage.json_file import key_to_filename


@pytest.fixture(params=["memory", "json"])
def kv(request, tmp_path):
    if request.param == "memory":
        return InMemoryKeyValueStore()
    return JsonFileKeyValueStore(tmp_path / "data")


class TestCollectionKeys:
    """Tests for per-user key naming."""

    def test_prefixes(self):
        """Test each collection kind has its own prefix."""
        assert collection_key("ana@x.com", CollectionKind.TRANSACTIONS) == "tx_ana@x.com"
        assert collection_key("ana@x.com", CollectionKind.INVESTMENTS) == "inv_ana@x.com"
        assert collection_key("ana@x.com", CollectionKind.TAXES) == "tax_ana@x.com"
        assert collection_key("ana@x.com", CollectionKind.CHAT) == "chat_ana@x.com"

    def test_email_normalized(self):
        """Test emails are lower-cased and trimmed."""
        assert collection_key(" Ana@X.com ", CollectionKind.TAXES) == "tax_ana@x.com"


class TestKeyValueStore:
    """Behavior shared by every backend."""

    def test_set_and_get(self, kv):
        """Test values round-trip as JSON."""
        kv.set("config", {"moeda": "BRL", "itens": [1, 2]})
        assert kv.get("config") == {"moeda": "BRL", "itens": [1, 2]}

    def test_missing_key_returns_default(self, kv):
        """Test absent keys return the default."""
        assert kv.get("nothing") is None
        assert kv.get("nothing", default=[]) == []

    def test_delete(self, kv):
        """Test deleting reports whether the key existed."""
        kv.set("a", 1)
        assert kv.delete("a") is True
        assert kv.delete("a") is False
        assert kv.get("a") is None

    def test_keys(self, kv):
        """Test all stored keys are listed."""
        kv.set("b", 1)
        kv.set("a", 2)
        assert kv.keys() == ["a", "b"]

    def test_collection_helpers(self, kv):
        """Test per-user collection access."""
        kv.set_collection("ana@x.com", CollectionKind.TAXES, [{"id": "1"}])
        assert kv.get_collection("ANA@x.com", CollectionKind.TAXES) == [{"id": "1"}]
        assert kv.get_collection("ana@x.com", CollectionKind.INVESTMENTS) == []

    def test_non_list_collection_is_empty(self, kv):
        """Test a collection stored as something else reads as empty."""
        kv.set(collection_key("ana@x.com", CollectionKind.TRANSACTIONS), {"oops": True})
        assert kv.get_collection("ana@x.com", CollectionKind.TRANSACTIONS) == []

    def test_clear_user(self, kv):
        """Test removing every collection of one user."""
        kv.set_collection("ana@x.com", CollectionKind.TAXES, [])
        kv.set_collection("ana@x.com", CollectionKind.CHAT, [])
        kv.set_collection("bruno@x.com", CollectionKind.CHAT, [])

        assert kv.clear_user("ana@x.com") == 2
        assert kv.keys() == ["chat_bruno@x.com"]

    def test_unserializable_value(self, kv):
        """Test values JSON cannot encode are rejected."""
        with pytest.raises(StorageWriteError):
            kv.set("bad", {"value": object()})

    def test_non_ascii_preserved(self, kv):
        """Test accented text survives storage."""
        kv.set("nome", "Alimentação")
        assert kv.get("nome") == "Alimentação"


class TestInMemoryStore:
    """Tests specific to the in-memory backend."""

    def test_corrupted_value_returns_default(self):
        """Test invalid JSON degrades to the default."""
        kv = InMemoryKeyValueStore({"tx_ana@x.com": "[{broken"})
        assert kv.get("tx_ana@x.com", default=[]) == []
        assert kv.get_collection("ana@x.com", CollectionKind.TRANSACTIONS) == []


class TestJsonFileStore:
    """Tests specific to the file backend."""

    def test_one_file_per_key(self, tmp_path):
        """Test each key lands in its own file."""
        kv = JsonFileKeyValueStore(tmp_path)
        kv.set("tx_ana@x.com", [])
        assert (tmp_path / "tx_ana@x.com.json").exists()

    def test_unsafe_characters_encoded(self):
        """Test key encoding for file names."""
        assert key_to_filename("tx_a/b c@x.com") == "tx_a%2Fb%20c@x.com.json"
        assert key_to_filename(".tmp-x") == "%2Etmp-x.json"

    def test_similar_keys_stay_apart(self, tmp_path):
        """Test keys that differ only in unsafe characters use different files."""
        kv = JsonFileKeyValueStore(tmp_path)
        kv.set("tx_a b@x.com", [1])
        kv.set("tx_a_b@x.com", [2])

        assert kv.get("tx_a b@x.com") == [1]
        assert kv.get("tx_a_b@x.com") == [2]

    def test_keys_are_original_keys(self, tmp_path):
        """Test keys() reports keys as they were set."""
        kv = JsonFileKeyValueStore(tmp_path)
        kv.set("tx_a b@x.com", [])
        kv.set("chat_c%d@x.com", [])
        kv.set(".hidden", 1)

        assert kv.keys() == [".hidden", "chat_c%d@x.com", "tx_a b@x.com"]

    def test_corrupted_file_returns_default(self, tmp_path):
        """Test a damaged file degrades to the default."""
        kv = JsonFileKeyValueStore(tmp_path)
        (tmp_path / "tx_ana@x.com.json").write_text("{{{", encoding="utf-8")
        assert kv.get_collection("ana@x.com", CollectionKind.TRANSACTIONS) == []

    def test_undecodable_file_returns_default(self, tmp_path):
        """Test invalid UTF-8 is treated as corruption."""
        kv = JsonFileKeyValueStore(tmp_path)
        (tmp_path / "chat_ana@x.com.json").write_bytes(b"\xff\xfe\x00")
        assert kv.get_collection("ana@x.com", CollectionKind.CHAT) == []

    def test_survives_new_instance(self, tmp_path):
        """Test data persists across store instances."""
        JsonFileKeyValueStore(tmp_path).set("a", [1, 2, 3])
        assert JsonFileKeyValueStore(tmp_path).get("a") == [1, 2, 3]

    def test_write_retried_then_fails(self, tmp_path, monkeypatch):
        """Test OSError on write is retried and surfaces as StorageWriteError."""
        kv = JsonFileKeyValueStore(tmp_path, write_attempts=2)
        calls = []

        def failing_replace(src, dst):
            calls.append(dst)
            raise OSError("read-only file system")

        monkeypatch.setattr(os, "replace", failing_replace)

        with pytest.raises(StorageWriteError):
            kv.set("a", 1)
        assert len(calls) == 2
        assert list(tmp_path.glob(".tmp-*")) == []

    def test_write_recovers_after_transient_error(self, tmp_path, monkeypatch):
        """Test a write that fails once succeeds on retry."""
        kv = JsonFileKeyValueStore(tmp_path, write_attempts=3)
        real_replace = os.replace
        failures = [OSError("busy")]

        def flaky_replace(src, dst):
            if failures:
                raise failures.pop()
            real_replace(src, dst)

        monkeypatch.setattr(os, "replace", flaky_replace)

        kv.set("a", {"ok": True})
        assert kv.get("a") == {"ok": True}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
