"""Commands exchanged between nodes and the transport interface they use."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Union

from shardnet.file import Metadata, Shard

METADATA_SIZE = 24
"""Bytes counted for a file's metadata on the wire: three machine words."""


def _name_size(name: str) -> int:
    return len(name.encode("utf-8"))


@dataclass(frozen=True)
class Create:
    """Announce a file so the peer can hold shards for it."""

    name: str
    meta: Metadata

    def size(self) -> int:
        return _name_size(self.name) + METADATA_SIZE


@dataclass(frozen=True)
class Replicate:
    """Hand one shard of a file to the peer."""

    name: str
    shard: Shard

    def size(self) -> int:
        return _name_size(self.name) + self.shard.size()


@dataclass(frozen=True)
class Request:
    """Ask the peer for every shard it holds of a file."""

    name: str

    def size(self) -> int:
        return _name_size(self.name)


Command = Union[Create, Replicate, Request]


class Network(ABC):
    """Transport connecting a node to its peers."""

    @abstractmethod
    async def discover(self) -> list[str]:
        """Return the addresses of the reachable peers."""

    @abstractmethod
    async def send(self, peer: str, command: Command) -> None:
        """Deliver a command to a peer."""

    @abstractmethod
    async def recv(self) -> Optional[tuple[str, Command]]:
        """Wait for the next command; None once the network is closed."""

    async def create(self, peer: str, name: str, meta: Metadata) -> None:
        await self.send(peer, Create(name, meta))

    async def replicate(self, peer: str, name: str, shard: Shard) -> None:
        await self.send(peer, Replicate(name, shard))

    async def request(self, peer: str, name: str) -> None:
        await self.send(peer, Request(name))