import pytest

from uniq_core.errors import HashFailure
from uniq_core.hashing import HASHERS, blake2b_32, fnv1_32, fnv1a_32, get_hasher, hash32


def test_fnv_reference_vectors() -> None:
    assert fnv1_32(b"") == 0x811C9DC5
    assert fnv1a_32(b"") == 0x811C9DC5
    assert fnv1_32(b"a") == 0x050C5D7E
    assert fnv1a_32(b"a") == 0xE40C292C
    assert fnv1_32(b"foobar") == 0x31F0B262
    assert fnv1a_32(b"foobar") == 0xBF9CF968


@pytest.mark.parametrize("name", sorted(HASHERS))
def test_hashes_are_deterministic_and_32_bit(name: str) -> None:
    for i in range(200):
        record = f"record-{i}".encode()
        first = hash32(record, name)
        assert first == hash32(record, name)
        assert 0 <= first < 1 << 32


def test_blake2b_spreads_sequential_keys_across_top_bits() -> None:
    top_nibbles = {blake2b_32(f"key-{i}".encode()) >> 28 for i in range(500)}
    assert len(top_nibbles) == 16


def test_hash32_accepts_bytes_like_inputs() -> None:
    assert hash32(bytearray(b"abc")) == hash32(b"abc")
    assert hash32(memoryview(b"abc")) == hash32(b"abc")


def test_hash32_rejects_text_instead_of_returning_a_sentinel() -> None:
    with pytest.raises(HashFailure):
        hash32("not bytes")  # type: ignore[arg-type]


def test_unknown_hash_name_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown hash function"):
        get_hasher("md5_32")


def test_hash_primitive_errors_surface_as_hash_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken(record: bytes) -> int:
        raise ValueError("primitive exploded")

    monkeypatch.setitem(HASHERS, "broken", broken)
    with pytest.raises(HashFailure, match="primitive exploded"):
        hash32(b"abc", "broken")


def test_out_of_range_hash_values_are_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(HASHERS, "wide", lambda record: 1 << 40)
    with pytest.raises(HashFailure, match="outside the 32-bit range"):
        hash32(b"abc", "wide")
