"""AES-256-CBC encryption of raw tri-merge payloads.

Ciphertext and IV are hex strings and always travel together: a report
either stores both or neither.  The key comes from configuration only; a
missing key is an error, never a reason to generate one.
"""

import json
import os
from typing import Any, NamedTuple, Optional

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from mortgage_credit.services.credit_reporting.errors import EncryptionConfigError

KEY_BYTES = 32
IV_BYTES = 16
_BLOCK_BITS = 128


class EncryptedPayload(NamedTuple):
    ciphertext: str
    iv: str


def load_encryption_key(value: Optional[str]) -> bytes:
    """Parse the configured 64-hex-char key into 32 raw bytes."""
    if not value:
        raise EncryptionConfigError("CREDIT_ENCRYPTION_KEY is not configured")
    try:
        key = bytes.fromhex(value)
    except ValueError as exc:
        raise EncryptionConfigError("CREDIT_ENCRYPTION_KEY is not valid hex") from exc
    if len(key) != KEY_BYTES:
        raise EncryptionConfigError(
            f"CREDIT_ENCRYPTION_KEY must be {KEY_BYTES} bytes, got {len(key)}"
        )
    return key


def serialize_payload(payload: Any) -> bytes:
    """Canonical JSON: sorted keys, compact separators, UTF-8."""
    return json.dumps(
        payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str
    ).encode("utf-8")


def encrypt_payload(payload: Any, key: bytes) -> EncryptedPayload:
    if len(key) != KEY_BYTES:
        raise EncryptionConfigError(f"Encryption key must be {KEY_BYTES} bytes")
    iv = os.urandom(IV_BYTES)
    padder = padding.PKCS7(_BLOCK_BITS).padder()
    padded = padder.update(serialize_payload(payload)) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return EncryptedPayload(ciphertext=ciphertext.hex(), iv=iv.hex())


def decrypt_payload(ciphertext: Optional[str], iv: Optional[str], key: bytes) -> Any:
    """Inverse of encrypt_payload; None when either half of the pair is missing."""
    if not ciphertext or not iv:
        return None
    if len(key) != KEY_BYTES:
        raise EncryptionConfigError(f"Encryption key must be {KEY_BYTES} bytes")
    decryptor = Cipher(algorithms.AES(key), modes.CBC(bytes.fromhex(iv))).decryptor()
    padded = decryptor.update(bytes.fromhex(ciphertext)) + decryptor.finalize()
    unpadder = padding.PKCS7(_BLOCK_BITS).unpadder()
    plaintext = unpadder.update(padded) + unpadder.finalize()
    return json.loads(plaintext.decode("utf-8"))


def configured_key() -> bytes:
    """Key from settings; raises EncryptionConfigError when absent."""
    from mortgage_credit.config import settings

    return load_encryption_key(settings.credit_encryption_key)
