from __future__ import annotations

from datetime import datetime, timezone

import pytest

from message_board.errors import NotFound, ValidationError
from message_board.store import InMemoryMessageStore, memory


def test_memory_store_lists_newest_first():
    store = InMemoryMessageStore()
    for text in ("first", "second", "third"):
        store.create(text)
    assert [m.text for m in store.list()] == ["third", "second", "first"]
    assert [m.text for m in store.list(limit=2)] == ["third", "second"]


def test_memory_store_breaks_timestamp_ties_by_newer_id(monkeypatch):
    frozen = datetime(2024, 1, 1, tzinfo=timezone.utc)
    monkeypatch.setattr(memory, "utc_now", lambda: frozen)
    store = InMemoryMessageStore(seed=["a", "b", "c"])
    assert [m.id for m in store.list()] == ["3", "2", "1"]


def test_memory_store_timestamps_never_go_backwards():
    store = InMemoryMessageStore(seed=[f"m{i}" for i in range(50)])
    stamps = [m.timestamp for m in store.list()]
    assert stamps == sorted(stamps, reverse=True)


def test_memory_store_has_no_size_cap_beyond_limit():
    store = InMemoryMessageStore(seed=[f"m{i}" for i in range(150)])
    assert len(store) == 150
    assert len(store.list()) == 150
    assert store.list()[0].text == "m149"


def test_memory_store_delete():
    store = InMemoryMessageStore(seed=["a", "b"])
    first, second = store.list()
    store.delete(first.id)
    assert [m.id for m in store.list()] == [second.id]

    with pytest.raises(NotFound):
        store.delete(first.id)
    assert len(store) == 1


@pytest.mark.parametrize("bad_id", ["", "abc", "-1", "0", "01", "1.5", "²"])
def test_memory_store_rejects_malformed_ids(bad_id):
    store = InMemoryMessageStore(seed=["a"])
    with pytest.raises(ValidationError):
        store.delete(bad_id)
    assert len(store) == 1


def test_memory_store_validates_text():
    store = InMemoryMessageStore()
    with pytest.raises(ValidationError):
        store.create("   ")
    with pytest.raises(ValidationError):
        store.create(None)  # type: ignore[arg-type]
    assert store.list() == []
