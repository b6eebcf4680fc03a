import pytest

from price_avs.errors import StateCorrupt, StateNotFound
from price_avs.store import RoundStore, open_store
from price_avs.store.codec import encode_record
from price_avs.store.file import FileKeyValue
from price_avs.store.memory import MemoryKeyValue
from price_avs.store.rounds import round_key
from price_avs.store.sqlite import SQLiteKeyValue
from price_avs.types import RevealMarker, RoundRecord
from price_avs.utils.bytes import INT256_MAX, INT256_MIN


@pytest.fixture(params=["memory", "file", "sqlite"])
def any_store(request, tmp_path):
    if request.param == "memory":
        kv = MemoryKeyValue()
    elif request.param == "file":
        kv = FileKeyValue(tmp_path / "state")
    else:
        kv = SQLiteKeyValue(str(tmp_path / "rounds.db"))
    s = RoundStore(kv)
    yield s
    s.close()


@pytest.mark.parametrize(
    "prediction,salt",
    [
        (1 << 96, bytes(range(32))),
        (-1, b"\x00" * 32),
        (-(1 << 200), b"\xff" * 32),
        (INT256_MAX, b"\x00" * 32),
        (INT256_MIN, b"\xff" * 32),
        (0, b"\x5a" * 32),
    ],
)
def test_roundtrip_is_exact(any_store: RoundStore, prediction: int, salt: bytes):
    rec = RoundRecord(round_id=7, prediction=prediction, salt=salt, commit_tx="0xabc", created_at=1_700_000_000)
    any_store.put(rec)
    got = any_store.get(7)
    assert got == rec
    assert got.prediction == prediction
    assert got.salt == salt


def test_unknown_round_is_not_found(any_store: RoundStore):
    with pytest.raises(StateNotFound) as ei:
        any_store.get(999)
    assert ei.value.round_id == 999
    assert not any_store.has(999)


def test_list_rounds_in_order(any_store: RoundStore):
    for rid in (5, 1, 300, 2**40):
        any_store.put(RoundRecord(rid, rid, b"\x01" * 32))
    assert any_store.list_rounds() == [1, 5, 300, 2**40]
    assert [r.round_id for r in any_store.iter_records()] == [1, 5, 300, 2**40]


def test_reveal_marker(any_store: RoundStore):
    any_store.put(RoundRecord(3, 10, b"\x02" * 32, "0xc0"))
    assert any_store.reveal_marker(3) is None
    any_store.mark_revealed(RevealMarker(3, "0xfeed", 1_700_000_100))
    m = any_store.reveal_marker(3)
    assert m == RevealMarker(3, "0xfeed", 1_700_000_100)
    # markers never show up as rounds
    assert any_store.list_rounds() == [3]


def test_delete_removes_record_and_marker(any_store: RoundStore):
    any_store.put(RoundRecord(4, 10, b"\x02" * 32))
    any_store.mark_revealed(RevealMarker(4, "0x01", 1))
    any_store.delete(4)
    assert not any_store.has(4)
    assert any_store.reveal_marker(4) is None


def _tamper(kv, rid: int, fn) -> None:
    raw = kv.get(round_key(rid))
    kv.put(round_key(rid), fn(raw))


@pytest.mark.parametrize(
    "mutate",
    [
        lambda b: b[:-1],  # truncated checksum
        lambda b: b[:10],  # truncated header
        lambda b: b + b"\x00",  # trailing garbage
        lambda b: b"XXXX" + b[4:],  # bad magic
        lambda b: b[:4] + b"\x02" + b[5:],  # unknown version
        lambda b: b[:20] + bytes([b[20] ^ 0x01]) + b[21:],  # flipped prediction bit
        lambda b: b"",
    ],
)
def test_tampered_record_is_corrupt(mutate):
    s = RoundStore(MemoryKeyValue())
    s.put(RoundRecord(9, -5, b"\x07" * 32, "0x99"))
    _tamper(s.kv, 9, mutate)
    with pytest.raises(StateCorrupt):
        s.get(9)


def test_record_under_wrong_key_is_corrupt():
    s = RoundStore(MemoryKeyValue())
    s.kv.put(round_key(1), encode_record(RoundRecord(2, 5, b"\x00" * 32)))
    with pytest.raises(StateCorrupt):
        s.get(1)


def test_record_rejects_bad_salt_length():
    with pytest.raises(ValueError):
        RoundRecord(1, 1, b"\x00" * 31)


def test_file_store_survives_reopen(tmp_path):
    uri = f"file://{tmp_path / 'state'}"
    with open_store(uri) as s:
        s.put(RoundRecord(11, -123, b"\xee" * 32, "0x11"))
    with open_store(uri) as s:
        assert s.get(11).prediction == -123
    # no temp files left behind
    assert all(p.suffix == ".bin" for p in (tmp_path / "state").iterdir())


def test_sqlite_store_survives_reopen(tmp_path):
    uri = f"sqlite://{tmp_path / 'rounds.db'}"
    with open_store(uri) as s:
        s.put(RoundRecord(12, 456, b"\x0e" * 32))
    with open_store(uri) as s:
        assert s.get(12).salt == b"\x0e" * 32


@pytest.mark.parametrize("uri", ["nope", "redis://x", "file://", "sqlite://"])
def test_open_store_rejects_bad_uris(uri: str):
    with pytest.raises(ValueError):
        open_store(uri)
