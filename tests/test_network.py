from __future__ import annotations

from typing import Optional

import pytest

from shardnet.file import File, Metadata, Shard
from shardnet.network import (
    METADATA_SIZE,
    Command,
    Create,
    Network,
    Replicate,
    Request,
)


class RecordingNetwork(Network):
    def __init__(self) -> None:
        self.sent: list[tuple[str, Command]] = []

    async def discover(self) -> list[str]:
        return []

    async def send(self, peer: str, command: Command) -> None:
        self.sent.append((peer, command))

    async def recv(self) -> Optional[tuple[str, Command]]:
        return None


def _describe(command: Command) -> Optional[tuple[str, str, int]]:
    match command:
        case Create(name, _):
            return ("create", name, command.size())
        case Replicate(name, shard):
            return ("replicate", name, shard.index)
        case Request(name):
            return ("request", name, command.size())
        case _:
            return None


def test_create_size_counts_name_and_metadata():
    meta = Metadata(length=10, data_shards=1, parity_shards=1)
    assert Create("report", meta).size() == len("report") + METADATA_SIZE


def test_create_with_empty_name_is_three_words():
    meta = Metadata(length=10, data_shards=1, parity_shards=1)
    assert Create("", meta).size() == 24


def test_replicate_size_counts_name_and_shard():
    shard = Shard(3, b"x" * 64)
    assert Replicate("abc", shard).size() == 3 + 64


def test_request_size_is_name_length():
    assert Request("hello").size() == 5


def test_sizes_count_utf8_bytes():
    name = "caf\u00e9"
    assert Request(name).size() == len(name.encode("utf-8"))
    assert Request(name).size() > len(name)


def test_replicate_size_matches_encoded_shard():
    file = File.encode("hello world!")
    shard = next(file.shards.present_iter())
    assert Replicate("f", shard).size() == 1 + shard.size()


def test_network_is_abstract():
    with pytest.raises(TypeError):
        Network()


@pytest.mark.asyncio
async def test_network_requires_recv_before_helpers_work():
    class NoRecv(Network):
        def __init__(self) -> None:
            self.sent: list[tuple[str, Command]] = []

        async def discover(self) -> list[str]:
            return []

        async def send(self, peer: str, command: Command) -> None:
            self.sent.append((peer, command))

    with pytest.raises(TypeError, match="recv"):
        NoRecv()

    class Complete(NoRecv):
        async def recv(self) -> Optional[tuple[str, Command]]:
            return None

    net = Complete()
    await net.request("4", "doc")
    assert net.sent == [("4", Request("doc"))]
    assert net.sent[0][1].size() == 3


@pytest.mark.asyncio
async def test_helpers_send_matching_commands():
    net = RecordingNetwork()
    meta = Metadata(length=5, data_shards=1, parity_shards=1)
    shard = Shard(0, b"data")

    await net.create("1", "f", meta)
    await net.replicate("2", "f", shard)
    await net.request("3", "f")

    assert net.sent == [
        ("1", Create("f", meta)),
        ("2", Replicate("f", shard)),
        ("3", Request("f")),
    ]


@pytest.mark.asyncio
async def test_commands_support_pattern_matching():
    net = RecordingNetwork()
    shard = Shard(2, b"ab")
    await net.replicate("7", "f", shard)

    assert net.sent == [("7", Replicate("f", shard))]
    peer, command = net.sent[0]
    assert peer == "7"
    assert command.size() == 3
    assert _describe(command) == ("replicate", "f", 2)
    assert command.shard.index == 2
    assert command.shard.size() == 2


@pytest.mark.asyncio
async def test_pattern_matching_distinguishes_commands():
    net = RecordingNetwork()
    meta = Metadata(length=5, data_shards=1, parity_shards=1)
    await net.create("1", "doc", meta)
    await net.request("2", "doc")

    assert net.sent == [("1", Create("doc", meta)), ("2", Request("doc"))]

    (_, created), (_, requested) = net.sent
    assert isinstance(created, Create)
    assert isinstance(requested, Request)
    assert created.name == "doc"
    assert created.meta == meta
    assert requested.name == "doc"
    assert created.size() == 3 + METADATA_SIZE
    assert requested.size() == 3

    described = [_describe(command) for _, command in net.sent]
    assert described == [
        ("create", "doc", 3 + METADATA_SIZE),
        ("request", "doc", 3),
    ]