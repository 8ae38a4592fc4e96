"""
Privacy helpers: one-way hashing for IPs / PII and AES-256-GCM encryption
for stored Meta access tokens.
"""
import base64
import binascii
import hashlib
import os
import secrets
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

CURRENT_VERSION = 1
KEY_LENGTH = 32
IV_LENGTH = 12


class EncryptionError(Exception):
    """Base class for token encryption failures."""


class EncryptionKeyError(EncryptionError):
    """ENCRYPTION_KEY missing or not a base64 encoded 32 byte key."""


class UnsupportedEncryptionVersion(EncryptionError):
    pass


def sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def hash_ip(ip: str, salt: str) -> str:
    """Irreversible IP hash; the raw IP is never persisted."""
    return sha256_hex(f"{ip}:{salt}")


def generate_event_id() -> str:
    """Dedup id shared by the browser pixel and the server event (32 hex chars)."""
    return secrets.token_hex(16)


def generate_encryption_key() -> str:
    """New base64 key suitable for ENCRYPTION_KEY."""
    return base64.b64encode(os.urandom(KEY_LENGTH)).decode("ascii")


@dataclass(frozen=True)
class EncryptedToken:
    ciphertext: str  # base64, GCM tag appended
    iv: str          # base64
    version: int = CURRENT_VERSION


class TokenCipher:
    """
    AES-256-GCM cipher for access tokens at rest.

    The key is validated lazily so a missing ENCRYPTION_KEY only breaks the
    code paths that actually need to decrypt.
    """

    def __init__(self, key_b64):
        self._key_b64 = key_b64
        self._aesgcm = None

    def _cipher(self):
        if self._aesgcm is None:
            if not self._key_b64:
                raise EncryptionKeyError("ENCRYPTION_KEY environment variable is not set")
            try:
                key = base64.b64decode(self._key_b64, validate=True)
            except (binascii.Error, ValueError) as e:
                raise EncryptionKeyError(f"ENCRYPTION_KEY is not valid base64: {e}") from e
            if len(key) != KEY_LENGTH:
                raise EncryptionKeyError(
                    f"ENCRYPTION_KEY must decode to {KEY_LENGTH} bytes, got {len(key)}"
                )
            self._aesgcm = AESGCM(key)
        return self._aesgcm

    def encrypt(self, plaintext: str) -> EncryptedToken:
        iv = os.urandom(IV_LENGTH)
        ciphertext = self._cipher().encrypt(iv, plaintext.encode("utf-8"), None)
        return EncryptedToken(
            ciphertext=base64.b64encode(ciphertext).decode("ascii"),
            iv=base64.b64encode(iv).decode("ascii"),
            version=CURRENT_VERSION,
        )

    def decrypt(self, token: EncryptedToken) -> str:
        version = token.version if token.version is not None else CURRENT_VERSION
        if version != CURRENT_VERSION:
            raise UnsupportedEncryptionVersion(f"Unsupported encryption version: {version}")

        try:
            iv = base64.b64decode(token.iv)
            ciphertext = base64.b64decode(token.ciphertext)
        except (binascii.Error, ValueError, TypeError) as e:
            raise EncryptionError(f"Malformed encrypted token: {e}") from e

        try:
            plaintext = self._cipher().decrypt(iv, ciphertext, None)
        except (InvalidTag, ValueError) as e:
            raise EncryptionError("Token decryption failed - ENCRYPTION_KEY may have changed") from e
        return plaintext.decode("utf-8")
