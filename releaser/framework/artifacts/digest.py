from __future__ import annotations

import hashlib
import zlib
from typing import Callable, Protocol

_CHUNK_SIZE = 1024 * 1024


class Hasher(Protocol):
    def update(self, data: bytes) -> None:
        ...

    def hexdigest(self) -> str:
        ...


class _Crc32:
    def __init__(self) -> None:
        self._value = 0

    def update(self, data: bytes) -> None:
        self._value = zlib.crc32(data, self._value)

    def hexdigest(self) -> str:
        return f"{self._value & 0xFFFFFFFF:08x}"


_ALGORITHMS: dict[str, Callable[[], Hasher]] = {
    "md5": hashlib.md5,
    "sha1": hashlib.sha1,
    "sha224": hashlib.sha224,
    "sha256": hashlib.sha256,
    "sha384": hashlib.sha384,
    "sha512": hashlib.sha512,
    "sha3-224": hashlib.sha3_224,
    "sha3-256": hashlib.sha3_256,
    "sha3-384": hashlib.sha3_384,
    "sha3-512": hashlib.sha3_512,
    "blake2b": hashlib.blake2b,
    "blake2s": hashlib.blake2s,
    "crc32": _Crc32,
}

SUPPORTED_ALGORITHMS: tuple[str, ...] = tuple(_ALGORITHMS)


def new_hasher(algorithm: str) -> Hasher:
    factory = _ALGORITHMS.get((algorithm or "").strip().lower())
    if factory is None:
        raise ValueError(f"invalid hash algorithm: {algorithm}")
    return factory()


def file_digest(path: str, algorithm: str) -> str:
    """Lowercase hex digest of the file at `path`; OS errors propagate unchanged."""

    hasher = new_hasher(algorithm)
    with open(path, "rb") as handle:
        while True:
            chunk = handle.read(_CHUNK_SIZE)
            if not chunk:
                break
            hasher.update(chunk)
    return hasher.hexdigest()
