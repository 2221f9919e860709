"""Ad-hoc database migrations for ApropriApp."""

from __future__ import annotations

from sqlalchemy import text


def ensure_kv_table(conn) -> None:
    conn.execute(
        text(
            """
            CREATE TABLE IF NOT EXISTS keyvalueentry (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
    )
    conn.execute(
        text(
            """
            CREATE INDEX IF NOT EXISTS ix_keyvalueentry_updated_at
            ON keyvalueentry (updated_at)
            """
        )
    )


def run_all(engine) -> None:
    with engine.begin() as conn:
        ensure_kv_table(conn)


__all__ = ["run_all", "ensure_kv_table"]
