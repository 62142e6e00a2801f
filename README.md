# shardnet

shardnet stores text files as Reed–Solomon erasure-coded shards and spreads
them across a set of peer nodes. A node that holds at least as many shards of
a file as the file has data shards can rebuild it, even when some peers are
gone.

The package has three parts:

- **`shardnet.reed_solomon`**: a systematic Reed–Solomon codec over GF(2^8)
  (`ReedSolomon`, with `encode` and `reconstruct`). It raises
  `ReedSolomonError` for bad input.
- **`shardnet.file`, `shardnet.network`, `shardnet.node`**: the erasure-coded
  file model (`File`, `Shards`, `Shard`, `Metadata`), the commands nodes
  exchange (`Create`, `Replicate`, `Request`), the abstract `Network`
  transport, and the `Node` that uploads, replicates and downloads files.
- **`shardnet.sim`**: an in-process asyncio network (`SimNetworkManager`,
  `SimNetwork`, `SimNode`) with per-node latency and throughput. It comes with
  a simulation (`shardnet.sim.simulation`) that disables random nodes and
  counts how many downloads still succeed.

It has no dependencies outside the standard library.

## Installing

```
pip install .
```

Install with the `test` extra (`pip install .[test]`) to run the test suite
with `pytest`.

## Encoding a file

Content is encoded as UTF-8 and cut into 64-byte data shards. The last shard is
padded with zero bytes. The same number of parity shards is added.

```python
from shardnet.file import File

file = File.encode("hello world!" * 100)
file.shards.delete(0)
file.shards.delete(3)
assert file.can_decode()
assert file.decode() == "hello world!" * 100
```

`File.decode()` returns `None` when too few shards are left to rebuild the
file. `File.encode()` raises `ReedSolomonError` for empty content, and for
content that would need more than 256 shards in total, that is, more than
8192 bytes.

## Running nodes

A `Node` works over any subclass of `shardnet.network.Network` that provides
the async `discover`, `send` and `recv` methods. `recv` returns `None` once the
network is closed, and that ends `Node.run()`. The simulator shows how to use
a node:

```python
import asyncio
from shardnet.sim.network import SimNetworkManager, SimNode

async def demo():
    manager = SimNetworkManager()
    a = await SimNode.spawn(10, 1000, manager)
    b = await SimNode.spawn(10, 1000, manager)
    await a.upload("notes", "some content")
    print(await b.download("notes"))
    print(manager.stats())
    await a.close()
    await b.close()

asyncio.run(demo())
```

`Node.upload` sends the file's metadata to every peer. It then deals the
shards out in turn between the peers and keeps a full copy itself. It raises
`RuntimeError` when there are no peers. `Node.download` returns the content if
the local shards are enough. Otherwise it sends a `Request` to every peer and
returns `None`. The shards the peers send back are merged as they arrive.
`SimNode.download` repeats the local attempt every 5 ms, up to 1000 times. It
then records a success or a failure in the manager's `SimNetworkStats`.

If `SimNode.spawn` gets no manager, it uses a process-wide one from
`default_manager()`.

## Running the simulation

```
shardnet-sim
```

The default run spawns 12 nodes and uploads 32 random files of 256 to 1023
characters, each to a random node. It then plays 4 rounds. Before each round
it waits 8 seconds. In each round it disables 6 random nodes and makes 8
concurrent downloads of random files from the nodes that are still up. At the
end it prints the number of successful and failed downloads, the messages
sent and the bytes sent. A full run takes at least 40 seconds.

Every setting can be changed with an option: `--nodes`, `--files`,
`--min-size`, `--max-size`, `--min-latency`, `--max-latency`,
`--min-throughput`, `--max-throughput`, `--rounds`, `--timeout`,
`--downloads`, `--disable` and `--settle`. Times are in milliseconds, and the
upper bounds of the ranges are exclusive. `--seed` makes a run repeatable.
`--log-level` sets the logging level. Its default comes from the
`SHARDNET_LOG` environment variable, or is `ERROR` when that is not set.

From Python, `simulate(config, manager, rng)` runs the same simulation with a
`Config` and returns the final `SimNetworkStats`.

## What it does not do

The only `Network` here is the in-process simulator. shardnet has no transport
over real sockets and keeps no files on disk. Nodes hold everything in memory
for as long as the process runs.