"""32-bit record hashing used to drive sketch register updates."""

from __future__ import annotations

from collections.abc import Callable
from hashlib import blake2b

from .errors import HashFailure

Hasher = Callable[[bytes], int]

FNV32_OFFSET_BASIS = 2166136261
FNV32_PRIME = 16777619
MASK32 = 0xFFFFFFFF
DEFAULT_HASH = "blake2b_32"


def fnv1_32(record: bytes) -> int:
    """FNV-1: multiply by the prime, then xor in each byte."""
    h = FNV32_OFFSET_BASIS
    for byte in record:
        h = (h * FNV32_PRIME) & MASK32
        h ^= byte
    return h


def fnv1a_32(record: bytes) -> int:
    """FNV-1a: xor in each byte, then multiply by the prime."""
    h = FNV32_OFFSET_BASIS
    for byte in record:
        h ^= byte
        h = (h * FNV32_PRIME) & MASK32
    return h


def blake2b_32(record: bytes) -> int:
    return int.from_bytes(blake2b(record, digest_size=4).digest(), "big")


HASHERS: dict[str, Hasher] = {
    "fnv1_32": fnv1_32,
    "fnv1a_32": fnv1a_32,
    "blake2b_32": blake2b_32,
}


def get_hasher(name: str = DEFAULT_HASH) -> Hasher:
    try:
        return HASHERS[name]
    except KeyError as exc:
        known = ", ".join(sorted(HASHERS))
        raise ValueError(f"Unknown hash function '{name}'. Choose one of: {known}") from exc


def hash32(record: bytes, name: str = DEFAULT_HASH) -> int:
    """Hash a record to an unsigned 32-bit integer.

    Failures are raised as ``HashFailure``; a fallback value would pile every
    failed record into one register and skew the estimate.
    """

    hasher = get_hasher(name)
    if not isinstance(record, (bytes, bytearray, memoryview)):
        raise HashFailure(f"Records must be bytes-like, got {type(record).__name__}")
    try:
        value = hasher(bytes(record))
    except (TypeError, ValueError) as exc:
        raise HashFailure(f"{name} failed to hash record: {exc}") from exc
    if not 0 <= value <= MASK32:
        raise HashFailure(f"{name} produced {value}, outside the 32-bit range")
    return value
