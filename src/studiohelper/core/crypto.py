"""Cryptographic helpers for studiohelper.

This module provides:
- derive_key: Argon2id key from the machine secret and a per-file salt
- seal, unseal: AES-256-GCM encryption of text fields to base64 strings
- compute_sha1: The content digest Studio records for every file

Sealed fields are bound to their field name as associated data, so a value
copied into another field of the credentials file does not decrypt.
"""

import base64
import binascii
import hashlib
import os

from argon2.low_level import Type, hash_secret_raw
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

# OWASP minimum Argon2id profile, the key is derived on every run
ARGON2_TIME_COST = 2
ARGON2_MEMORY_COST = 19456  # 19 MiB
ARGON2_PARALLELISM = 1
KEY_SIZE = 32

NONCE_SIZE = 12
SALT_SIZE = 16


class DecryptionError(Exception):
    """A sealed value could not be decoded, authenticated or decrypted."""


def generate_salt() -> str:
    """Generate a random salt, base64 encoded for the credentials file."""
    return base64.b64encode(os.urandom(SALT_SIZE)).decode("ascii")


def derive_key(secret: str, salt: str) -> bytes:
    """Derive a 256-bit key from a secret and a base64 salt using Argon2id.

    Raises:
        DecryptionError: If salt is not valid base64.
    """
    try:
        raw_salt = base64.b64decode(salt, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecryptionError(f"Invalid salt: {e}") from e
    return hash_secret_raw(
        secret=secret.encode("utf-8"),
        salt=raw_salt,
        time_cost=ARGON2_TIME_COST,
        memory_cost=ARGON2_MEMORY_COST,
        parallelism=ARGON2_PARALLELISM,
        hash_len=KEY_SIZE,
        type=Type.ID,
    )


def seal(value: str, key: bytes, field: str) -> str:
    """Encrypt a text value for one field.

    Args:
        value: Text to encrypt.
        key: 32-byte key from derive_key().
        field: Field name, authenticated along with the value.

    Returns:
        base64(nonce || ciphertext || tag).
    """
    nonce = os.urandom(NONCE_SIZE)
    sealed = AESGCM(key).encrypt(nonce, value.encode("utf-8"), field.encode("utf-8"))
    return base64.b64encode(nonce + sealed).decode("ascii")


def unseal(sealed: str, key: bytes, field: str) -> str:
    """Decrypt a value produced by seal() for the same field.

    Raises:
        DecryptionError: If the value is malformed, was sealed with another
            key or for another field, or was tampered with.
    """
    try:
        raw = base64.b64decode(sealed, validate=True)
        if len(raw) <= NONCE_SIZE:
            raise DecryptionError("Sealed value too short")
        plain = AESGCM(key).decrypt(raw[:NONCE_SIZE], raw[NONCE_SIZE:], field.encode("utf-8"))
        return plain.decode("utf-8")
    except (binascii.Error, ValueError, InvalidTag) as e:
        raise DecryptionError(f"Cannot unseal {field}") from e


def compute_sha1(data: bytes) -> str:
    """Compute the SHA-1 hex digest Studio stores in file details."""
    return hashlib.sha1(data).hexdigest()
