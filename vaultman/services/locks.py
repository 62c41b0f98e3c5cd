"""
Per-product allocation lock.

PostgreSQL: a transaction-scoped advisory lock keyed by product, released
automatically at COMMIT/ROLLBACK. Two allocations of the same product run
one after the other; different products never wait for each other.

Other backends rely on their own locking: SQLite serializes writers on the
database lock, MySQL/InnoDB locking reads see the latest committed rows.
"""

import hashlib

from django.db import connection


def key_to_int64(key: str) -> int:
    """
    Convert a string key into a stable signed 64-bit integer.

    Advisory locks take a BIGINT; BLAKE2b with an 8-byte digest is stable
    across processes and Python versions.
    """
    digest = hashlib.blake2b(key.encode("utf-8"), digest_size=8).digest()
    value = int.from_bytes(digest, byteorder="big", signed=False)

    # Convert unsigned -> signed int64 range
    if value >= 2**63:
        value -= 2**64

    return value


def product_lock_key(product_id) -> str:
    return f"vaultman:stock:{product_id}"


def lock_product(product_id) -> None:
    """
    Block until this transaction holds the product's allocation lock.

    Must be called inside transaction.atomic().
    """
    if connection.vendor != "postgresql":
        return

    with connection.cursor() as cursor:
        cursor.execute(
            "SELECT pg_advisory_xact_lock(%s)",
            [key_to_int64(product_lock_key(product_id))],
        )
