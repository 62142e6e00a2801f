"""A storage node that spreads erasure-coded files over its peers."""

from __future__ import annotations

from typing import Optional

from shardnet.file import File
from shardnet.network import Create, Network, Replicate, Request


class Node:
    """Holds files and shards, serving peers through a network."""

    def __init__(self, network: Network) -> None:
        self.network = network
        self._files: dict[str, File] = {}

    async def upload(self, name: str, content: str) -> None:
        """Encode content, spread its shards over the peers and keep a copy.

        Raises ReedSolomonError for content that cannot be encoded and
        RuntimeError when there is no peer to hand shards to.
        """
        file = File.encode(content)

        peers = await self.network.discover()
        for peer in peers:
            await self.network.create(peer, name, file.meta)

        shards = list(file.shards.present_iter())
        if shards and not peers:
            raise RuntimeError("no peers to replicate shards to")
        for shard in shards:
            peer = peers[shard.index % len(peers)]
            await self.network.replicate(peer, name, shard)

        self._files[name] = file

    async def try_download(self, name: str) -> Optional[str]:
        """Decode the file from the shards held locally, if possible."""
        file = self._files.get(name)
        return file.decode() if file is not None else None

    async def download(self, name: str) -> Optional[str]:
        """Return the file if it decodes locally, else ask every peer for shards."""
        content = await self.try_download(name)
        if content is not None:
            return content

        for peer in await self.network.discover():
            await self.network.request(peer, name)
        return None

    async def run(self) -> None:
        """Serve incoming commands until the network closes."""
        while (received := await self.network.recv()) is not None:
            peer, command = received
            match command:
                case Create(name, meta):
                    self._files.setdefault(name, File.empty(meta))
                case Replicate(name, shard):
                    file = self._files.get(name)
                    if file is not None:
                        file.shards.merge(shard)
                case Request(name):
                    file = self._files.get(name)
                    shards = list(file.shards.present_iter()) if file is not None else []
                    for shard in shards:
                        await self.network.replicate(peer, name, shard)