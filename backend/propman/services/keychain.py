"""
Secret store for the database passphrase.

WHAT: store/retrieve/remove the passphrase of an encrypted store.

WHY: The passphrase must never live in configuration files or the
environment of a desktop install. On Linux the desktop keyring (libsecret)
is used through the `secret-tool` CLI; elsewhere, or when no keyring is
running, a Fernet-protected file is the fallback.

HOW: Both backends satisfy the KeychainService protocol. Operations never
raise for "not there": retrieve returns None and store/remove return
False, so the lifecycle manager decides what a missing key means.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Optional, Protocol

from propman.core.config import Settings
from propman.core.exceptions import EncryptionError
from propman.services.encryption_service import EncryptionService

logger = logging.getLogger(__name__)

DEFAULT_KEY_LABEL = "Property Management Database Encryption Key"
SECRET_TOOL_TIMEOUT_SECONDS = 5


class KeychainService(Protocol):
    def store_key(self, password: str, label: str = DEFAULT_KEY_LABEL) -> bool: ...

    def retrieve_key(self) -> Optional[str]: ...

    def remove_key(self) -> bool: ...

    def is_available(self) -> bool: ...


class SecretToolKeychain:
    """
    libsecret keyring via the `secret-tool` command.

    Entries are identified by the attributes
    `application <app_name>` and `key-type database-encryption`.
    """

    def __init__(self, app_name: str):
        self.app_name = app_name

    @property
    def _attributes(self) -> list:
        return ["application", self.app_name, "key-type", "database-encryption"]

    def _run(self, args: list, input_text: Optional[str] = None) -> Optional[subprocess.CompletedProcess]:
        try:
            return subprocess.run(
                ["secret-tool", *args],
                input=input_text,
                capture_output=True,
                text=True,
                timeout=SECRET_TOOL_TIMEOUT_SECONDS,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"secret-tool {args[0]} failed: {type(e).__name__}")
            return None

    def is_available(self) -> bool:
        return shutil.which("secret-tool") is not None

    def store_key(self, password: str, label: str = DEFAULT_KEY_LABEL) -> bool:
        result = self._run(["store", f"--label={label}", *self._attributes], input_text=password)
        ok = result is not None and result.returncode == 0
        if not ok:
            logger.warning("Could not store database key in keyring")
        return ok

    def retrieve_key(self) -> Optional[str]:
        result = self._run(["lookup", *self._attributes])
        if result is None or result.returncode != 0:
            return None
        key = result.stdout.strip()
        return key or None

    def remove_key(self) -> bool:
        result = self._run(["clear", *self._attributes])
        return result is not None and result.returncode == 0


class FernetFileKeychain:
    """
    Passphrase stored in a file encrypted with a Fernet key.

    The Fernet key itself comes from configuration (KEYCHAIN_FILE_KEY), so
    the file alone is useless to someone who copies it.
    """

    def __init__(self, path: Path, encryption_key: Optional[str]):
        self.path = Path(path)
        self._encryption_key = encryption_key

    def _service(self) -> Optional[EncryptionService]:
        if not self._encryption_key:
            return None
        return EncryptionService(self._encryption_key)

    def is_available(self) -> bool:
        return bool(self._encryption_key)

    def store_key(self, password: str, label: str = DEFAULT_KEY_LABEL) -> bool:
        service = self._service()
        if service is None:
            return False
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(service.encrypt(password), encoding="utf-8")
        self.path.chmod(0o600)
        logger.info(f"Stored {label} in {self.path}")
        return True

    def retrieve_key(self) -> Optional[str]:
        service = self._service()
        if service is None or not self.path.exists():
            return None
        try:
            return service.decrypt(self.path.read_text(encoding="utf-8").strip())
        except EncryptionError:
            logger.error(f"Stored database key in {self.path} could not be decrypted")
            return None

    def remove_key(self) -> bool:
        if not self.path.exists():
            return False
        self.path.unlink()
        return True


def get_keychain_service(settings: Settings) -> KeychainService:
    """
    Pick the secret store for this platform and configuration.

    KEYCHAIN_BACKEND=auto prefers the keyring and falls back to the file.
    """
    file_path = Path(
        settings.KEYCHAIN_FILE_PATH or settings.database_file.parent / ".dbkey"
    )
    file_keychain = FernetFileKeychain(file_path, settings.KEYCHAIN_FILE_KEY)

    if settings.KEYCHAIN_BACKEND == "file":
        return file_keychain

    secret_tool = SecretToolKeychain(settings.KEYCHAIN_APP_NAME)
    if settings.KEYCHAIN_BACKEND == "secret-tool" or secret_tool.is_available():
        return secret_tool
    return file_keychain
