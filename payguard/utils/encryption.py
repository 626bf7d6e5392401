"""
Encryption utilities for provider credentials stored at rest.

Secrets are sealed with AES-256-GCM. The key is derived from the operator's
master secret with scrypt and a fixed salt, and every value is stored as
``iv:tag:ciphertext`` in hex. The fixed salt and the missing key version are
known limitations: rotating the master secret makes every stored value
undecryptable.
"""

import re
import os
from functools import lru_cache
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from ..config.settings import get_settings
from ..models.errors import (
    AuthenticationFailedError,
    ConfigurationError,
    FormatError,
)
from .logger import log
from .metrics import record_codec_operation

KEY_LENGTH = 32
IV_LENGTH = 16
AUTH_TAG_LENGTH = 16
SEPARATOR = ":"

# scrypt parameters: N=2**14, r=8, p=1 over the constant salt "salt"
KDF_SALT = b"salt"
KDF_N = 2 ** 14
KDF_R = 8
KDF_P = 1

_HEX_SEGMENT = re.compile(r"[0-9a-fA-F]+")


@lru_cache(maxsize=8)
def derive_key(master_secret: str) -> bytes:
    """
    Derive the 32-byte AES key from a master secret

    Cached by master secret value, so a different secret always yields a
    freshly derived key.
    """
    kdf = Scrypt(salt=KDF_SALT, length=KEY_LENGTH, n=KDF_N, r=KDF_R, p=KDF_P)
    return kdf.derive(master_secret.encode("utf-8"))


def is_encrypted(value: Optional[str]) -> bool:
    """
    Check whether a value looks like an EncryptedSecret

    True only for three non-empty, colon separated hex segments.
    """
    if not value:
        return False
    parts = value.split(SEPARATOR)
    if len(parts) != 3:
        return False
    return all(_HEX_SEGMENT.fullmatch(part) for part in parts)


def _decode_hex(segment: str, name: str) -> bytes:
    if segment and not _HEX_SEGMENT.fullmatch(segment):
        raise FormatError(f"Encrypted {name} is not valid hex", {"segment": name})
    try:
        return bytes.fromhex(segment)
    except ValueError:
        raise FormatError(f"Encrypted {name} is not valid hex", {"segment": name})


class SecretCodec:
    """Authenticated encryption for small secret strings"""

    def __init__(self, master_secret: Optional[str] = None):
        """
        Initialize the codec

        Args:
            master_secret: Operator supplied master secret. The codec can be
                built without one; encrypt and decrypt then raise
                ConfigurationError.
        """
        self.master_secret = master_secret or None

    @property
    def is_configured(self) -> bool:
        return self.master_secret is not None

    def _cipher(self, operation: str) -> AESGCM:
        if not self.master_secret:
            record_codec_operation(operation, "config_error")
            raise ConfigurationError("ENCRYPTION_KEY is not configured")
        return AESGCM(derive_key(self.master_secret))

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a secret

        Args:
            plaintext: Text to encrypt (may be empty)

        Returns:
            EncryptedSecret string "iv:tag:ciphertext" in hex
        """
        cipher = self._cipher("encrypt")
        iv = os.urandom(IV_LENGTH)

        # AESGCM appends the 16 byte tag to the ciphertext
        sealed = cipher.encrypt(iv, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-AUTH_TAG_LENGTH], sealed[-AUTH_TAG_LENGTH:]

        record_codec_operation("encrypt", "success")
        return SEPARATOR.join([iv.hex(), tag.hex(), ciphertext.hex()])

    def decrypt(self, encoded: str) -> str:
        """
        Decrypt an EncryptedSecret

        Args:
            encoded: Value in "iv:tag:ciphertext" form

        Returns:
            Original plaintext

        Raises:
            ConfigurationError: no master secret
            FormatError: value is not three well formed hex segments
            AuthenticationFailedError: wrong key or tampered data
        """
        cipher = self._cipher("decrypt")

        parts = (encoded or "").split(SEPARATOR)
        if len(parts) != 3:
            record_codec_operation("decrypt", "format_error")
            raise FormatError(
                "Invalid encrypted text format", {"segments": len(parts)}
            )

        try:
            iv = _decode_hex(parts[0], "iv")
            tag = _decode_hex(parts[1], "auth_tag")
            ciphertext = _decode_hex(parts[2], "ciphertext")
        except FormatError:
            record_codec_operation("decrypt", "format_error")
            raise

        if len(iv) != IV_LENGTH or len(tag) != AUTH_TAG_LENGTH:
            record_codec_operation("decrypt", "format_error")
            raise FormatError(
                "Invalid IV or authentication tag length",
                {"iv_length": len(iv), "tag_length": len(tag)},
            )

        try:
            plaintext = cipher.decrypt(iv, ciphertext + tag, None)
        except InvalidTag:
            record_codec_operation("decrypt", "auth_failed")
            log.warning(
                "Secret decryption failed integrity check",
                extra={"event_type": "secret_decryption_failed"},
            )
            raise AuthenticationFailedError(
                "Decryption failed: wrong key or corrupted data"
            ) from None

        record_codec_operation("decrypt", "success")
        return plaintext.decode("utf-8")

    def is_encrypted(self, value: Optional[str]) -> bool:
        return is_encrypted(value)

    def encrypt_if_needed(self, value: str) -> str:
        """Encrypt value unless it is already an EncryptedSecret"""
        if is_encrypted(value):
            return value
        return self.encrypt(value)

    def decrypt_if_encrypted(self, value: Optional[str]) -> Optional[str]:
        """Decrypt EncryptedSecret values and pass legacy plaintext through"""
        if value is None or not is_encrypted(value):
            return value
        return self.decrypt(value)


def generate_master_secret() -> str:
    """
    Generate a new random master secret

    Returns:
        64 character hex string (32 random bytes)
    """
    return os.urandom(KEY_LENGTH).hex()


# Global codec instance
_secret_codec: Optional[SecretCodec] = None


def get_secret_codec() -> SecretCodec:
    """
    Get or create the process-wide codec built from settings

    Returns:
        SecretCodec instance
    """
    global _secret_codec
    if _secret_codec is None:
        _secret_codec = SecretCodec(get_settings().encryption_key)
    return _secret_codec


def reset_secret_codec() -> None:
    """Forget the process-wide codec (after settings change)"""
    global _secret_codec
    _secret_codec = None


def encrypt_secret(plaintext: str) -> str:
    """Encrypt a secret with the process-wide codec"""
    return get_secret_codec().encrypt(plaintext)


def decrypt_secret(encoded: str) -> str:
    """Decrypt a secret with the process-wide codec"""
    return get_secret_codec().decrypt(encoded)
