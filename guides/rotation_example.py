"""Example showing HMAC key rotation with two processes sharing SQLite."""

import asyncio
import tempfile
import time
from pathlib import Path

from keyspace import KeyStore, TokenCodec
from keyspace.persistence import SQLiteRecordStore


class SteppingClock:
    """Clock that can be moved forward to simulate key expiry."""

    def __init__(self) -> None:
        self.offset = 0.0

    def __call__(self) -> float:
        return time.time() + self.offset


async def main():
    """Provision a namespace, sign, rotate and verify across two processes."""
    db_path = Path(tempfile.mkdtemp()) / "keys.db"
    clock = SteppingClock()
    codec = TokenCodec(clock=clock)

    # Two key stores over one database stand in for two processes
    process_a = KeyStore(store=SQLiteRecordStore(db_path), codec=codec)
    process_b = KeyStore(store=SQLiteRecordStore(db_path), codec=codec)

    await process_a.provision(
        {
            "id": "wallet-1",
            "algorithm": "HS256",
            "token_ttl_in_secs": 300,
            "clock_tolerance_in_secs": 30,
        }
    )

    clock.offset = 329
    token = await process_a.sign("wallet-1", {"sub": "alice"})
    print(f"Issued token: {token}")

    # Both processes find the key expired at the same moment
    clock.offset = 331
    await asyncio.gather(
        process_a.sign("wallet-1", {"sub": "bob"}),
        process_b.sign("wallet-1", {"sub": "carol"}),
    )

    record = await process_b.get_namespace("wallet-1")
    print(f"Current key: {record.state['key']['id']}")
    print(f"Previous key: {record.state['previous_key']['id']}")
    print(f"Old token still verifies: {await process_b.verify(token)}")


if __name__ == "__main__":
    asyncio.run(main())
