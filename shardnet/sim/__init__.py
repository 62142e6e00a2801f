"""In-process asyncio network and replication simulation for shardnet nodes."""