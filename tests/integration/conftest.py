"""
Integration test fixtures — PostgreSQL testcontainer and schema setup.

Provides a real PostgreSQL instance for each test session via testcontainers.
Creates the three tables the chain store reads.
Each test gets a fresh, clean database via truncation.
"""

from __future__ import annotations

from collections.abc import Iterator

import psycopg
import pytest
from testcontainers.postgres import PostgresContainer

DDL = """
CREATE TABLE chains (
    chain_fp  BYTEA PRIMARY KEY,
    chain_id  BIGINT NOT NULL UNIQUE,
    valid     BOOLEAN NOT NULL DEFAULT TRUE
);

CREATE TABLE certs (
    cert_fp   BYTEA PRIMARY KEY,
    raw_cert  BYTEA NOT NULL
);

CREATE TABLE reports (
    chain_fp       BYTEA NOT NULL,
    cert_fp        BYTEA NOT NULL,
    is_end_entity  BOOLEAN NOT NULL
);
"""

TRUNCATE_ALL = """
TRUNCATE reports, certs, chains;
"""


def insert_chain(
    dsn: str,
    chain_fp: bytes,
    chain_id: int,
    certs: list[tuple[bytes, bool, bytes]],
    valid: bool = True,
    duplicate_reports: bool = False,
) -> None:
    """Insert a chain with its (cert_fp, is_end_entity, raw_cert) rows."""
    with psycopg.connect(dsn) as conn:
        conn.execute(
            "INSERT INTO chains (chain_fp, chain_id, valid) VALUES (%s, %s, %s)",
            (chain_fp, chain_id, valid),
        )
        for cert_fp, is_end_entity, raw in certs:
            conn.execute(
                "INSERT INTO certs (cert_fp, raw_cert) VALUES (%s, %s) ON CONFLICT DO NOTHING",
                (cert_fp, raw),
            )
            for _ in range(2 if duplicate_reports else 1):
                conn.execute(
                    "INSERT INTO reports (chain_fp, cert_fp, is_end_entity) VALUES (%s, %s, %s)",
                    (chain_fp, cert_fp, is_end_entity),
                )
        conn.commit()


@pytest.fixture(scope="session")
def postgres_container() -> Iterator[PostgresContainer]:
    """Start a PostgreSQL container for the entire test session."""
    with PostgresContainer("postgres:16-alpine") as pg:
        dsn = pg.get_connection_url().replace("postgresql+psycopg2", "postgresql")
        with psycopg.connect(dsn) as conn:
            conn.execute(DDL)
            conn.commit()
        yield pg


@pytest.fixture()
def dsn(postgres_container: PostgresContainer) -> str:
    """Return a psycopg-compatible DSN and truncate all tables before each test."""
    connection_url = postgres_container.get_connection_url().replace(
        "postgresql+psycopg2", "postgresql"
    )
    with psycopg.connect(connection_url) as conn:
        conn.execute(TRUNCATE_ALL)
        conn.commit()
    return connection_url
