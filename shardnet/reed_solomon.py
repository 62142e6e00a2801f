"""Systematic Reed-Solomon erasure coding over GF(2^8)."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from functools import reduce
from operator import xor
from typing import Optional

_POLYNOMIAL = 0x11D
_MAX_SHARDS = 256

Matrix = list[list[int]]


class ReedSolomonError(ValueError):
    """Raised when shards cannot be encoded or reconstructed."""


def _build_tables() -> tuple[list[int], list[int]]:
    exp = [0] * 512
    log = [0] * 256
    value = 1
    for power in range(255):
        exp[power] = value
        log[value] = power
        value <<= 1
        if value & 0x100:
            value ^= _POLYNOMIAL
    exp[255:510] = exp[0:255]
    return exp, log


_EXP, _LOG = _build_tables()


def _mul(a: int, b: int) -> int:
    if a == 0 or b == 0:
        return 0
    return _EXP[_LOG[a] + _LOG[b]]


def _inverse(a: int) -> int:
    if a == 0:
        raise ReedSolomonError("zero has no inverse in GF(2^8)")
    return _EXP[255 - _LOG[a]]


def _pow(a: int, exponent: int) -> int:
    if exponent == 0:
        return 1
    if a == 0:
        return 0
    return _EXP[(_LOG[a] * exponent) % 255]


_MUL_TABLES = tuple(bytes(_mul(coef, value) for value in range(256)) for coef in range(256))


def _vandermonde(rows: int, cols: int) -> Matrix:
    return [[_pow(r, c) for c in range(cols)] for r in range(rows)]


def _mat_mul(left: Matrix, right: Matrix) -> Matrix:
    columns = list(zip(*right))
    return [
        [reduce(xor, (_mul(a, b) for a, b in zip(row, column)), 0) for column in columns]
        for row in left
    ]


def _invert(matrix: Matrix) -> Matrix:
    size = len(matrix)
    work = [list(row) + [1 if i == j else 0 for j in range(size)] for i, row in enumerate(matrix)]
    for col in range(size):
        pivot = next((r for r in range(col, size) if work[r][col]), None)
        if pivot is None:
            raise ReedSolomonError("singular matrix")
        work[col], work[pivot] = work[pivot], work[col]
        scale = _inverse(work[col][col])
        work[col] = [_mul(scale, v) for v in work[col]]
        for r in range(size):
            factor = work[r][col]
            if r != col and factor:
                work[r] = [v ^ _mul(factor, p) for v, p in zip(work[r], work[col])]
    return [row[size:] for row in work]


def _combine(coefficients: Iterable[int], shards: Iterable[bytes], size: int) -> bytes:
    acc = 0
    for coef, shard in zip(coefficients, shards):
        if coef:
            acc ^= int.from_bytes(shard.translate(_MUL_TABLES[coef]), "big")
    return acc.to_bytes(size, "big")


def _common_size(shards: Iterable[bytes]) -> int:
    sizes = {len(shard) for shard in shards}
    if len(sizes) != 1:
        raise ReedSolomonError("shards differ in size")
    size = sizes.pop()
    if size == 0:
        raise ReedSolomonError("shards are empty")
    return size


class ReedSolomon:
    """A codec turning data shards into data plus parity shards and back."""

    def __init__(self, data_shards: int, parity_shards: int) -> None:
        if data_shards <= 0:
            raise ReedSolomonError("at least one data shard is required")
        if parity_shards <= 0:
            raise ReedSolomonError("at least one parity shard is required")
        if data_shards + parity_shards > _MAX_SHARDS:
            raise ReedSolomonError(f"at most {_MAX_SHARDS} shards are supported")
        self.data_shards = data_shards
        self.parity_shards = parity_shards
        vandermonde = _vandermonde(self.total_shards, data_shards)
        self._matrix = _mat_mul(vandermonde, _invert(vandermonde[:data_shards]))

    @property
    def total_shards(self) -> int:
        return self.data_shards + self.parity_shards

    def encode(self, shards: Sequence[bytes]) -> list[bytes]:
        """Return the data shards followed by freshly computed parity shards.

        ``shards`` holds either the data shards alone or all shards, in which
        case the parity slots are ignored.
        """
        if len(shards) not in (self.data_shards, self.total_shards):
            raise ReedSolomonError(
                f"expected {self.data_shards} or {self.total_shards} shards, got {len(shards)}"
            )
        data = [bytes(shard) for shard in shards[: self.data_shards]]
        size = _common_size(data)
        parity = [_combine(row, data, size) for row in self._matrix[self.data_shards :]]
        return data + parity

    def reconstruct(self, shards: Sequence[Optional[bytes]]) -> list[bytes]:
        """Return every shard, rebuilding the missing (``None``) ones."""
        if len(shards) != self.total_shards:
            raise ReedSolomonError(f"expected {self.total_shards} shards, got {len(shards)}")
        present = {i: bytes(shard) for i, shard in enumerate(shards) if shard is not None}
        if len(present) < self.data_shards:
            raise ReedSolomonError("too few shards present to reconstruct")
        size = _common_size(present.values())
        if len(present) == self.total_shards:
            return [present[i] for i in range(self.total_shards)]

        chosen = sorted(present)[: self.data_shards]
        decode = _invert([self._matrix[i] for i in chosen])
        sub_shards = [present[i] for i in chosen]
        data = [
            present[i] if i in present else _combine(decode[i], sub_shards, size)
            for i in range(self.data_shards)
        ]
        parity = [
            present[i] if i in present else _combine(self._matrix[i], data, size)
            for i in range(self.data_shards, self.total_shards)
        ]
        return data + parity