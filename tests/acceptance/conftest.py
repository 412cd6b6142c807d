"""
Acceptance test fixtures — PostgreSQL testcontainer and real X.509 chains.

Reuses the schema of the integration tests. Certificates are issued on the fly
with `cryptography` (EC P-256 keys) so submitted bodies carry real DER bytes.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import psycopg
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID
from testcontainers.postgres import PostgresContainer

from tests.integration.conftest import DDL, TRUNCATE_ALL


@dataclass(frozen=True, slots=True)
class IssuedChain:
    """DER certificates of one chain: end-entity first, then its issuers."""

    leaf: bytes
    issuers: tuple[bytes, ...]


def _name(common_name: str) -> x509.Name:
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])


def _certificate(
    subject: str,
    issuer: str,
    public_key: ec.EllipticCurvePublicKey,
    signing_key: ec.EllipticCurvePrivateKey,
    is_ca: bool,
) -> bytes:
    now = datetime.now(UTC)
    cert = (
        x509.CertificateBuilder()
        .subject_name(_name(subject))
        .issuer_name(_name(issuer))
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=90))
        .add_extension(x509.BasicConstraints(ca=is_ca, path_length=None), critical=True)
        .sign(signing_key, hashes.SHA256())
    )
    return cert.public_bytes(serialization.Encoding.DER)


def issue_chain(host: str) -> IssuedChain:
    """Issue a root → intermediate → leaf chain for `host`."""
    root_key = ec.generate_private_key(ec.SECP256R1())
    inter_key = ec.generate_private_key(ec.SECP256R1())
    leaf_key = ec.generate_private_key(ec.SECP256R1())

    root = _certificate("Test Root", "Test Root", root_key.public_key(), root_key, is_ca=True)
    inter = _certificate("Test Intermediate", "Test Root", inter_key.public_key(), root_key, is_ca=True)
    leaf = _certificate(host, "Test Intermediate", leaf_key.public_key(), inter_key, is_ca=False)
    return IssuedChain(leaf=leaf, issuers=(inter, root))


def fingerprint(der: bytes) -> bytes:
    return hashlib.sha256(der).digest()


def store_chain(dsn: str, chain_id: int, chain: IssuedChain, valid: bool = True, with_leaf: bool = True) -> None:
    """Insert a chain the way the scanner stores it: fingerprints in chains/reports, DER in certs."""
    certs = [(chain.leaf, True)] if with_leaf else []
    certs += [(der, False) for der in chain.issuers]
    chain_fp = hashlib.sha256(b"".join(der for der, _ in certs)).digest()

    with psycopg.connect(dsn) as conn:
        conn.execute(
            "INSERT INTO chains (chain_fp, chain_id, valid) VALUES (%s, %s, %s)",
            (chain_fp, chain_id, valid),
        )
        for der, is_end_entity in certs:
            conn.execute(
                "INSERT INTO certs (cert_fp, raw_cert) VALUES (%s, %s) ON CONFLICT DO NOTHING",
                (fingerprint(der), der),
            )
            conn.execute(
                "INSERT INTO reports (chain_fp, cert_fp, is_end_entity) VALUES (%s, %s, %s)",
                (chain_fp, fingerprint(der), is_end_entity),
            )
        conn.commit()


@pytest.fixture(scope="session")
def acceptance_pg() -> Iterator[PostgresContainer]:
    """Start a PostgreSQL container for the acceptance test session."""
    with PostgresContainer("postgres:16-alpine") as pg:
        dsn = pg.get_connection_url().replace("postgresql+psycopg2", "postgresql")
        with psycopg.connect(dsn) as conn:
            conn.execute(DDL)
            conn.commit()
        yield pg


@pytest.fixture()
def acceptance_dsn(acceptance_pg: PostgresContainer) -> str:
    """Return a psycopg-compatible DSN and truncate all tables before each test."""
    connection_url = acceptance_pg.get_connection_url().replace("postgresql+psycopg2", "postgresql")
    with psycopg.connect(connection_url) as conn:
        conn.execute(TRUNCATE_ALL)
        conn.commit()
    return connection_url
