"""
Encrypted-store detection and per-connection pragmas.

WHAT: Decides whether the store file is encrypted and, if so, fetches
its passphrase; installs the PRAGMAs every new connection needs.

WHY: An encrypted store opened without its key looks exactly like a
corrupt file. Detecting encryption first keeps the health probe from
"recovering" a perfectly good encrypted store by replacing it with a
backup. A missing passphrase for an encrypted store is fatal; there is
no plaintext fallback.

HOW: A plaintext probe runs `SELECT count(*) FROM sqlite_master`. SQLite
reports an encrypted (or non-SQLite) file as "file is not a database".
The cipher PRAGMAs are SQLCipher 4 settings and only take effect when the
linked SQLite library is SQLCipher; the WAL settings apply everywhere.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DatabaseError as SADatabaseError
from sqlalchemy.pool import NullPool

from propman.core.exceptions import DatabaseEncryptionError
from propman.services.keychain import KeychainService

logger = logging.getLogger(__name__)

NOT_A_DATABASE_SIGNAL = "file is not a database"

CIPHER_PRAGMAS = (
    "PRAGMA cipher_page_size = 4096",
    "PRAGMA kdf_iter = 256000",
    "PRAGMA cipher_hmac_algorithm = HMAC_SHA512",
    "PRAGMA cipher_kdf_algorithm = PBKDF2_HMAC_SHA512",
)
CONNECTION_PRAGMAS = (
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
)


@dataclass(frozen=True)
class EncryptionDetectionResult:
    is_encrypted: bool
    passphrase: Optional[str] = None


def _quote(passphrase: str) -> str:
    return "'" + passphrase.replace("'", "''") + "'"


def apply_connection_pragmas(dbapi_connection: Any, passphrase: Optional[str]) -> None:
    """Run the key/cipher PRAGMAs (when keyed) and the WAL PRAGMAs on a raw connection."""
    cursor = dbapi_connection.cursor()
    try:
        if passphrase:
            cursor.execute(f"PRAGMA key = {_quote(passphrase)}")
            for pragma in CIPHER_PRAGMAS:
                cursor.execute(pragma)
        for pragma in CONNECTION_PRAGMAS:
            cursor.execute(pragma)
    finally:
        cursor.close()


def install_connection_pragmas(engine: Engine, passphrase: Optional[str]) -> None:
    """
    Register a connect listener on a (sync) engine.

    For an async engine pass `async_engine.sync_engine`.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # noqa: ARG001
        apply_connection_pragmas(dbapi_connection, passphrase)


def create_probe_engine(database_path: Path, passphrase: Optional[str] = None) -> Engine:
    """Short-lived sync engine (no pooling) for probes and maintenance PRAGMAs."""
    engine = create_engine(f"sqlite:///{Path(database_path)}", poolclass=NullPool)
    install_connection_pragmas(engine, passphrase)
    return engine


def is_plaintext_readable(database_path: Path) -> bool:
    """
    Try to read the schema table without a key.

    Returns:
        False only for the "file is not a database" signal; any other
        failure propagates.
    """
    engine = create_engine(f"sqlite:///{Path(database_path)}", poolclass=NullPool)
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT count(*) FROM sqlite_master")).scalar()
        return True
    except SADatabaseError as e:
        if NOT_A_DATABASE_SIGNAL in str(e.orig if e.orig is not None else e).lower():
            return False
        raise
    finally:
        engine.dispose()


def detect_encryption(database_path: Path, keychain: KeychainService) -> EncryptionDetectionResult:
    """
    Determine whether the store is encrypted and fetch its passphrase.

    Raises:
        DatabaseEncryptionError: If the store is encrypted and the secret
            store has no passphrase for it
    """
    database_path = Path(database_path)
    if not database_path.exists():
        return EncryptionDetectionResult(is_encrypted=False)

    if is_plaintext_readable(database_path):
        return EncryptionDetectionResult(is_encrypted=False)

    logger.info(f"Database {database_path.name} is encrypted; retrieving passphrase")
    passphrase = keychain.retrieve_key()
    if not passphrase:
        logger.critical(
            f"Database {database_path.name} is encrypted but no passphrase is available"
        )
        raise DatabaseEncryptionError(database=database_path.name)

    return EncryptionDetectionResult(is_encrypted=True, passphrase=passphrase)
