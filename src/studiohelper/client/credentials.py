"""Encrypted storage of the Studio session token.

This module provides:
- Credentials: The auth token and the user name it belongs to
- CredentialStore: Reads and writes the encrypted credentials file
- machine_secret: Default secret bound to the current machine

Every field is encrypted separately with a key derived from the store's
secret and a per-file salt. A file that cannot be read or decrypted is
treated as "no credentials", never as an error.
"""

from __future__ import annotations

import json
import logging
import platform
import re
import uuid
from dataclasses import dataclass
from pathlib import Path

from studiohelper.core.crypto import DecryptionError, derive_key, generate_salt, seal, unseal

logger = logging.getLogger(__name__)

SECRET_BASE = "not/that/secret/by/itself/!:("
TOKEN_PATTERN = re.compile(r"^[\w:\-]+$")
SEALED_FIELDS = ("authToken", "username")


def machine_secret(base: str = SECRET_BASE) -> str:
    """Build a secret tied to this machine and installation.

    Combines the base string, the MAC address, every letter of the
    package path except each third one, and the CPU model.
    """
    mac = f"{uuid.getnode():012x}"
    package_dir = str(Path(__file__).resolve().parent)
    path_part = "".join(c for i, c in enumerate(package_dir) if (i + 1) % 3)
    cpu_model = platform.processor() or platform.machine()
    return base + mac + path_part + cpu_model


@dataclass(frozen=True)
class Credentials:
    """Session credentials persisted between runs."""

    auth_token: str
    username: str = ""


class CredentialStore:
    """Persists Credentials as an encrypted JSON file."""

    def __init__(self, path: Path | str, secret: str | None = None) -> None:
        """Initialize the store.

        Args:
            path: Credentials file location.
            secret: Encryption secret (defaults to machine_secret()).
        """
        self._path = Path(path)
        self._secret = secret if secret is not None else machine_secret()

    @property
    def path(self) -> Path:
        """Get the credentials file location."""
        return self._path

    def get(self) -> Credentials | None:
        """Load credentials.

        Returns:
            Credentials, or None if the file is missing, unreadable,
            encrypted with another secret or holds a malformed token.
        """
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None

        if not isinstance(data, dict):
            return None

        try:
            key = derive_key(self._secret, str(data["salt"]))
            fields = {
                name: unseal(str(data[name]), key, name)
                for name in SEALED_FIELDS
                if name in data
            }
        except (KeyError, DecryptionError) as e:
            logger.debug(f"Could not decrypt {self._path}: {e}")
            return None

        token = fields.get("authToken", "")
        if not TOKEN_PATTERN.match(token):
            return None
        return Credentials(auth_token=token, username=fields.get("username", ""))

    def put(self, credentials: Credentials) -> bool:
        """Save credentials.

        Returns:
            True if the file was written.
        """
        salt = generate_salt()
        key = derive_key(self._secret, salt)
        data = {
            "salt": salt,
            "authToken": seal(credentials.auth_token, key, "authToken"),
            "username": seal(credentials.username, key, "username"),
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Could not save credentials to {self._path}: {e}")
            return False
        return True

    def clear(self) -> None:
        """Remove the credentials file if present."""
        self._path.unlink(missing_ok=True)
