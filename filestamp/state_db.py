from __future__ import annotations

from pathlib import Path

import aiosqlite

from filestamp.snapshot import Snapshot


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS snapshot_state (
    name TEXT PRIMARY KEY,
    payload TEXT NOT NULL,
    updated_at INTEGER NOT NULL
);
"""


async def ensure_db(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    async with aiosqlite.connect(db_path) as db:
        await db.execute(SCHEMA_SQL)
        await db.commit()


async def save_snapshot(db_path: Path, name: str, snapshot: Snapshot) -> None:
    await ensure_db(db_path)
    async with aiosqlite.connect(db_path) as db:
        await db.execute(
            """
            INSERT OR REPLACE INTO snapshot_state (name, payload, updated_at)
            VALUES (?, ?, strftime('%s','now'))
            """,
            (name, snapshot.marshal()),
        )
        await db.commit()


async def load_payload(db_path: Path, name: str) -> str | None:
    await ensure_db(db_path)
    async with aiosqlite.connect(db_path) as db:
        cursor = await db.execute(
            "SELECT payload FROM snapshot_state WHERE name = ?",
            (name,),
        )
        row = await cursor.fetchone()
        await cursor.close()
    if row is None:
        return None
    return str(row[0])


async def load_snapshot(db_path: Path, name: str) -> Snapshot | None:
    payload = await load_payload(db_path, name)
    if payload is None:
        return None
    return Snapshot.unmarshal(payload)


async def list_snapshots(db_path: Path) -> list[str]:
    await ensure_db(db_path)
    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        cursor = await db.execute("SELECT name FROM snapshot_state ORDER BY name")
        rows = await cursor.fetchall()
        await cursor.close()
    return [str(row["name"]) for row in rows]


async def delete_snapshot(db_path: Path, name: str) -> bool:
    await ensure_db(db_path)
    async with aiosqlite.connect(db_path) as db:
        cursor = await db.execute("DELETE FROM snapshot_state WHERE name = ?", (name,))
        deleted = cursor.rowcount > 0
        await cursor.close()
        await db.commit()
    return deleted
