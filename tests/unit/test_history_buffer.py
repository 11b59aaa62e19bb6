import pytest

from src.domain.entities.history_buffer import HistoryBuffer
from src.domain.entities.history_entry import HistoryEntry
from src.domain.entities.image_payload import ImagePayload


def _entry(n: int) -> HistoryEntry:
    return HistoryEntry(id=f"hist_{n}", image=ImagePayload(data="aGF0", media_type="image/png"), prompt=f"p{n}")


def test_push_is_newest_first():
    buf = HistoryBuffer()
    assert buf.is_empty()
    for n in (1, 2, 3):
        buf.push(_entry(n))
    assert [e.id for e in buf.list()] == ["hist_3", "hist_2", "hist_1"]
    assert len(buf) == 3
    assert not buf.is_empty()


def test_remove_returns_entry_and_unknown_is_none():
    buf = HistoryBuffer([_entry(2), _entry(1)])
    removed = buf.remove("hist_1")
    assert removed.id == "hist_1"
    assert "hist_1" not in buf
    assert buf.remove("hist_1") is None
    assert buf.remove("nope") is None
    assert [e.id for e in buf.list()] == ["hist_2"]


def test_duplicate_ids_are_rejected():
    buf = HistoryBuffer()
    buf.push(_entry(1))
    with pytest.raises(ValueError, match="Duplicate"):
        buf.push(_entry(1))
    assert len(buf) == 1


def test_list_is_a_snapshot():
    buf = HistoryBuffer()
    buf.push(_entry(1))
    snapshot = buf.list()
    snapshot.clear()
    assert len(buf) == 1


def test_copy_is_independent():
    buf = HistoryBuffer()
    buf.push(_entry(1))
    clone = buf.copy()
    clone.push(_entry(2))
    clone.remove("hist_1")
    assert [e.id for e in buf.list()] == ["hist_1"]
    assert [e.id for e in clone.list()] == ["hist_2"]


def test_get_does_not_remove():
    buf = HistoryBuffer([_entry(1)])
    assert buf.get("hist_1").prompt == "p1"
    assert buf.get("missing") is None
    assert len(buf) == 1


def test_cap_evicts_oldest_inserted():
    buf = HistoryBuffer(max_entries=2)
    assert buf.push(_entry(1)) is None
    assert buf.push(_entry(2)) is None
    buf.get("hist_1")  # access does not protect an entry
    evicted = buf.push(_entry(3))
    assert evicted.id == "hist_1"
    assert [e.id for e in buf.list()] == ["hist_3", "hist_2"]


def test_invalid_cap():
    with pytest.raises(ValueError):
        HistoryBuffer(max_entries=0)
