"""Run a replication simulation over a simulated network."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import random
import string
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from shardnet.sim.network import SimNetworkManager, SimNetworkStats, SimNode, default_manager

logger = logging.getLogger(__name__)

NAME_LENGTH = 16
_ALPHABETIC = string.ascii_letters
_ALPHANUMERIC = string.ascii_letters + string.digits


def _uniform(rng: random.Random, low: int, high: int, what: str) -> int:
    if low >= high:
        raise ValueError(f"empty {what} range [{low}, {high})")
    return rng.randrange(low, high)


@dataclass(frozen=True)
class GeneratedFile:
    """A randomly named file with random alphanumeric content."""

    name: str
    content: str

    @classmethod
    def generate(cls, size: int, rng: Optional[random.Random] = None) -> GeneratedFile:
        if rng is None:
            rng = random.Random()
        name = "".join(rng.choices(_ALPHABETIC, k=NAME_LENGTH))
        content = "".join(rng.choices(_ALPHANUMERIC, k=size))
        return cls(name, content)


@dataclass(frozen=True)
class Config:
    """Simulation parameters; ranges are half-open, times in milliseconds."""

    nodes: int = 12
    file_count: int = 32
    file_min_size: int = 256
    file_max_size: int = 1024
    network_min_latency: int = 10
    network_max_latency: int = 30
    network_min_throughput: int = 100
    network_max_throughput: int = 10000
    rounds: int = 4
    timeout: int = 8000
    downloads: int = 8
    disable: int = 6
    settle: int = 1000

    async def spawn_nodes(
        self,
        manager: Optional[SimNetworkManager] = None,
        rng: Optional[random.Random] = None,
    ) -> list[SimNode]:
        if manager is None:
            manager = default_manager()
        if rng is None:
            rng = random.Random()
        nodes = []
        for _ in range(self.nodes):
            latency = _uniform(rng, self.network_min_latency, self.network_max_latency, "latency")
            throughput = _uniform(
                rng, self.network_min_throughput, self.network_max_throughput, "throughput"
            )
            nodes.append(await SimNode.spawn(latency, throughput, manager))
        logger.info("spawned %d nodes", len(nodes))
        return nodes

    def generate_files(self, rng: Optional[random.Random] = None) -> list[GeneratedFile]:
        if rng is None:
            rng = random.Random()
        files = [
            GeneratedFile.generate(
                _uniform(rng, self.file_min_size, self.file_max_size, "file size"), rng
            )
            for _ in range(self.file_count)
        ]
        logger.info("generated %d files", len(files))
        return files


async def simulate(
    config: Config,
    manager: Optional[SimNetworkManager] = None,
    rng: Optional[random.Random] = None,
) -> SimNetworkStats:
    """Upload files, then run rounds of downloads with nodes disabled."""
    if manager is None:
        manager = default_manager()
    if rng is None:
        rng = random.Random()

    logger.info("starting simulation")
    nodes = await config.spawn_nodes(manager, rng)
    try:
        files = config.generate_files(rng)
        for file in files:
            await rng.choice(nodes).upload(file.name, file.content)

        await asyncio.sleep(config.timeout / 1000)

        for round_number in range(config.rounds):
            await asyncio.sleep(config.timeout / 1000)

            sample = set(rng.sample(range(len(nodes)), config.disable))
            logger.info("round %d: disabling nodes %s", round_number, sorted(sample))

            enabled, disabled = [], []
            for index, node in enumerate(nodes):
                if index in sample:
                    await node.disable()
                    disabled.append(node)
                else:
                    enabled.append(node)

            logger.info("round %d: starting", round_number)
            downloads = [
                rng.choice(enabled).download(rng.choice(files).name)
                for _ in range(config.downloads)
            ]
            await asyncio.gather(*downloads)
            logger.info("round %d: done", round_number)

            for node in disabled:
                await node.enable()

        await asyncio.sleep(config.settle / 1000)
    finally:
        for node in nodes:
            await node.close()

    stats = manager.stats()
    logger.info(
        "simulation complete: downloads=%d failures=%d messages=%d bytes=%d",
        stats.successful_downloads,
        stats.failed_downloads,
        stats.messages_sent,
        stats.bytes_sent,
    )
    return stats


def _parser() -> argparse.ArgumentParser:
    defaults = Config()
    parser = argparse.ArgumentParser(description="Simulate erasure-coded file replication.")
    options = {
        "--nodes": ("nodes", "number of nodes"),
        "--files": ("file_count", "number of files"),
        "--min-size": ("file_min_size", "smallest file size"),
        "--max-size": ("file_max_size", "file size upper bound (exclusive)"),
        "--min-latency": ("network_min_latency", "smallest latency in ms"),
        "--max-latency": ("network_max_latency", "latency upper bound in ms (exclusive)"),
        "--min-throughput": ("network_min_throughput", "smallest throughput in bytes/ms"),
        "--max-throughput": ("network_max_throughput", "throughput upper bound (exclusive)"),
        "--rounds": ("rounds", "number of download rounds"),
        "--timeout": ("timeout", "pause before each round in ms"),
        "--downloads": ("downloads", "downloads per round"),
        "--disable": ("disable", "nodes disabled per round"),
        "--settle": ("settle", "pause after the last round in ms"),
    }
    for flag, (dest, help_text) in options.items():
        parser.add_argument(flag, dest=dest, type=int, default=getattr(defaults, dest), help=help_text)
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("SHARDNET_LOG", "ERROR"),
        help="logging level (default from SHARDNET_LOG, else ERROR)",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())
    config = Config(
        **{
            name: getattr(args, name)
            for name in Config.__dataclass_fields__
        }
    )
    stats = asyncio.run(simulate(config, SimNetworkManager(), random.Random(args.seed)))
    print(
        f"simulation complete: downloads={stats.successful_downloads} "
        f"failures={stats.failed_downloads} messages={stats.messages_sent} "
        f"bytes={stats.bytes_sent}"
    )
    return 0