import random

import pytest

from shardnet.sim.network import SimNetworkManager
from shardnet.sim.simulation import Config, GeneratedFile, main, simulate


def _small_config(**overrides):
    values = dict(
        nodes=4,
        file_count=3,
        file_min_size=10,
        file_max_size=50,
        network_min_latency=0,
        network_max_latency=1,
        network_min_throughput=1000,
        network_max_throughput=1001,
        rounds=2,
        timeout=0,
        downloads=3,
        disable=0,
        settle=0,
    )
    values.update(overrides)
    return Config(**values)


def test_generated_file_shape():
    file = GeneratedFile.generate(50, random.Random(1))
    assert len(file.name) == 16
    assert file.name.isascii() and file.name.isalpha()
    assert len(file.content) == 50
    assert file.content.isascii() and file.content.isalnum()


def test_generation_is_reproducible():
    first = GeneratedFile.generate(30, random.Random(7))
    second = GeneratedFile.generate(30, random.Random(7))
    assert first == second


def test_generate_files_sizes_in_range():
    config = Config(file_count=5, file_min_size=10, file_max_size=20)
    files = config.generate_files(random.Random(3))
    assert len(files) == 5
    assert all(10 <= len(file.content) < 20 for file in files)


def test_generate_files_rejects_empty_range():
    config = Config(file_count=1, file_min_size=5, file_max_size=5)
    with pytest.raises(ValueError):
        config.generate_files(random.Random(0))


@pytest.mark.asyncio
async def test_spawn_nodes_uses_configured_ranges():
    config = Config(
        nodes=4,
        network_min_latency=1,
        network_max_latency=3,
        network_min_throughput=10,
        network_max_throughput=20,
    )
    nodes = await config.spawn_nodes(SimNetworkManager(), random.Random(5))
    try:
        assert [node.id for node in nodes] == [0, 1, 2, 3]
        assert all(1 <= node.network.latency < 3 for node in nodes)
        assert all(10 <= node.network.throughput < 20 for node in nodes)
    finally:
        for node in nodes:
            await node.close()


@pytest.mark.asyncio
async def test_simulate_all_downloads_succeed():
    config = _small_config()
    stats = await simulate(config, SimNetworkManager(), random.Random(11))
    assert stats.successful_downloads == config.rounds * config.downloads
    assert stats.failed_downloads == 0
    assert stats.messages_sent > 0
    assert stats.bytes_sent > 0


@pytest.mark.asyncio
async def test_simulate_rejects_too_many_disabled():
    config = _small_config(disable=10)
    with pytest.raises(ValueError):
        await simulate(config, SimNetworkManager(), random.Random(2))


def test_main_prints_summary(capsys):
    argv = [
        "--nodes", "3", "--files", "2", "--min-size", "10", "--max-size", "40",
        "--min-latency", "0", "--max-latency", "1",
        "--min-throughput", "1000", "--max-throughput", "1001",
        "--rounds", "1", "--timeout", "0", "--downloads", "2",
        "--disable", "0", "--settle", "0", "--seed", "4",
    ]
    assert main(argv) == 0
    out = capsys.readouterr().out
    assert "downloads=2" in out
    assert "failures=0" in out