"""Files split into erasure-coded shards."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Optional

from shardnet.reed_solomon import ReedSolomon, ReedSolomonError

SHARD_SIZE = 64


@dataclass(frozen=True)
class Shard:
    """One present shard together with its position in the file."""

    index: int
    data: bytes = field(repr=False)

    def size(self) -> int:
        return len(self.data)


@dataclass
class Shards:
    """Fixed number of shard slots, each either holding bytes or empty."""

    slots: list[Optional[bytes]]

    def _check(self, index: int) -> None:
        if not 0 <= index < len(self.slots):
            raise IndexError(f"shard index {index} out of range")

    def insert(self, shard: bytes, index: int) -> None:
        self._check(index)
        self.slots[index] = bytes(shard)

    def delete(self, index: int) -> None:
        self._check(index)
        self.slots[index] = None

    def merge(self, shard: Shard) -> None:
        """Store the shard unless its slot is already filled."""
        self._check(shard.index)
        if self.slots[shard.index] is None:
            self.slots[shard.index] = shard.data

    def present(self) -> int:
        return sum(slot is not None for slot in self.slots)

    def present_iter(self) -> Iterator[Shard]:
        return (
            Shard(index, data) for index, data in enumerate(self.slots) if data is not None
        )

    def size(self) -> int:
        return sum(len(slot) for slot in self.slots if slot is not None)

    def __len__(self) -> int:
        return len(self.slots)


@dataclass(frozen=True)
class Metadata:
    """Original length and shard layout of a file."""

    length: int
    data_shards: int
    parity_shards: int


@dataclass
class File:
    """A file's metadata and whichever of its shards are known."""

    meta: Metadata
    shards: Shards

    @classmethod
    def empty(cls, meta: Metadata) -> File:
        return cls(meta, Shards([None] * (meta.data_shards + meta.parity_shards)))

    @classmethod
    def encode(cls, content: str) -> File:
        """Split ``content`` into data shards plus as many parity shards.

        Raises ReedSolomonError when the content is empty or too large.
        """
        raw = content.encode("utf-8")
        chunks = [raw[start : start + SHARD_SIZE].ljust(SHARD_SIZE, b"\0")
                  for start in range(0, len(raw), SHARD_SIZE)]
        count = len(chunks)
        codec = ReedSolomon(count, count)
        meta = Metadata(length=len(raw), data_shards=count, parity_shards=count)
        return cls(meta, Shards(list(codec.encode(chunks))))

    def decode(self) -> Optional[str]:
        """Return the content, or None when it cannot be recovered."""
        if not self.can_decode():
            return None
        try:
            codec = ReedSolomon(self.meta.data_shards, self.meta.parity_shards)
            restored = codec.reconstruct(self.shards.slots)
        except ReedSolomonError:
            return None
        raw = b"".join(restored[: self.meta.data_shards])[: self.meta.length]
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            return None

    def can_decode(self) -> bool:
        return self.shards.present() >= self.meta.data_shards