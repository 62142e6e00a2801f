"""An in-process network of simulated nodes with latency and throughput."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, replace
from typing import Optional

from shardnet.network import Command, Network
from shardnet.node import Node

logger = logging.getLogger(__name__)

QUEUE_CAPACITY = 256
DOWNLOAD_ATTEMPTS = 1000
DOWNLOAD_INTERVAL = 0.005

_Envelope = tuple[int, Command]


@dataclass(frozen=True)
class SimNetworkStats:
    """Counters gathered over the lifetime of a simulated network."""

    successful_downloads: int = 0
    failed_downloads: int = 0
    messages_sent: int = 0
    bytes_sent: int = 0


class SimNetworkManager:
    """Routes commands between simulated nodes and keeps statistics."""

    def __init__(self) -> None:
        self._next_id = 0
        self._queues: dict[int, asyncio.Queue[_Envelope]] = {}
        self._disabled: set[int] = set()
        self._stats = SimNetworkStats()
        self._tasks: set[asyncio.Task[None]] = set()

    def stats(self) -> SimNetworkStats:
        """Return a snapshot of the counters."""
        return self._stats

    def _count(self, **increments: int) -> None:
        self._stats = replace(
            self._stats,
            **{key: getattr(self._stats, key) + value for key, value in increments.items()},
        )

    async def spawn(self, latency: int, throughput: int) -> SimNode:
        """Register a new node and start serving its commands."""
        node_id = self._next_id
        self._next_id += 1
        queue: asyncio.Queue[_Envelope] = asyncio.Queue(QUEUE_CAPACITY)
        self._queues[node_id] = queue
        logger.debug("spawned node %d", node_id)
        return SimNode(SimNetwork(node_id, self, queue, latency, throughput))

    async def disable(self, node_id: int) -> None:
        self._disabled.add(node_id)
        logger.debug("disabled node %d", node_id)

    async def enable(self, node_id: int) -> None:
        self._disabled.discard(node_id)
        logger.debug("enabled node %d", node_id)

    async def peers(self, node_id: int) -> list[int]:
        """Return the ids of every enabled node other than ``node_id``."""
        return [i for i in range(self._next_id) if i != node_id and i not in self._disabled]

    async def forward(self, sender: int, receiver: int, command: Command) -> None:
        """Queue a command for delivery to ``receiver``."""
        try:
            queue = self._queues[receiver]
        except KeyError:
            raise LookupError(f"no node with id {receiver}") from None
        await queue.put((sender, command))

    def _dispatch(self, sender: int, receiver: int, command: Command) -> None:
        self._count(messages_sent=1, bytes_sent=command.size())
        task = asyncio.get_running_loop().create_task(self.forward(sender, receiver, command))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


_default: Optional[SimNetworkManager] = None


def default_manager() -> SimNetworkManager:
    """Return the process-wide manager, creating it on first use."""
    global _default
    if _default is None:
        _default = SimNetworkManager()
    return _default


class SimNetwork(Network):
    """One node's view of the simulated network."""

    def __init__(
        self,
        node_id: int,
        manager: SimNetworkManager,
        queue: asyncio.Queue[_Envelope],
        latency: int,
        throughput: int,
    ) -> None:
        self.id = node_id
        self.manager = manager
        self.latency = latency
        self.throughput = throughput
        self.closed = False
        self._queue = queue

    async def discover(self) -> list[str]:
        return [str(peer) for peer in await self.manager.peers(self.id)]

    async def send(self, peer: str, command: Command) -> None:
        receiver = int(peer)
        logger.debug("sending from %d to %d: %r", self.id, receiver, command)
        self.manager._dispatch(self.id, receiver, command)

    async def recv(self) -> Optional[tuple[str, Command]]:
        """Wait for a command, then delay it by latency plus transfer time (ms)."""
        if self.closed:
            return None
        sender, command = await self._queue.get()
        delay_ms = self.latency + command.size() // self.throughput
        await asyncio.sleep(delay_ms / 1000)
        logger.debug("received from %d at %d: %r", sender, self.id, command)
        return str(sender), command


class SimNode:
    """A running node attached to a simulated network."""

    def __init__(self, network: SimNetwork) -> None:
        self.network = network
        self.node = Node(network)
        self._runner = asyncio.get_running_loop().create_task(self.node.run())

    @property
    def id(self) -> int:
        return self.network.id

    @property
    def _manager(self) -> SimNetworkManager:
        return self.network.manager

    @classmethod
    async def spawn(
        cls, latency: int, throughput: int, manager: Optional[SimNetworkManager] = None
    ) -> SimNode:
        if manager is None:
            manager = default_manager()
        return await manager.spawn(latency, throughput)

    async def disable(self) -> None:
        await self._manager.disable(self.id)

    async def enable(self) -> None:
        await self._manager.enable(self.id)

    async def upload(self, name: str, content: str) -> None:
        logger.info("uploading %s to node %d", name, self.id)
        await self.node.upload(name, content)

    async def download(self, name: str) -> Optional[str]:
        """Fetch a file, waiting for peers' shards; counts success or failure."""
        logger.info("node %d downloading %s", self.id, name)
        content = await self._download(name)
        if content is not None:
            logger.info("node %d downloaded %s", self.id, name)
            self._manager._count(successful_downloads=1)
        else:
            logger.error("node %d failed to download %s", self.id, name)
            self._manager._count(failed_downloads=1)
        return content

    async def _download(self, name: str) -> Optional[str]:
        content = await self.node.download(name)
        if content is not None:
            return content
        for _ in range(DOWNLOAD_ATTEMPTS):
            await asyncio.sleep(DOWNLOAD_INTERVAL)
            content = await self.node.try_download(name)
            if content is not None:
                return content
        return None

    async def close(self) -> None:
        """Stop serving commands."""
        self.network.closed = True
        self._runner.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._runner