"""
String cipher for credentials stored at rest.

Secrets are encrypted with AES-256-GCM using a key derived from a pass phrase
with PBKDF2-HMAC-SHA256. Salt and nonce are drawn fresh for every call and
prepended to the cipher text, so the result is self-contained:

    urlsafe_b64( salt[32] + nonce[12] + ciphertext + tag[16] )
"""

import base64
import binascii
import logging
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..utils.constants import DERIVATION_ITERATIONS, KEY_SIZE, NONCE_SIZE, SALT_SIZE
from ..utils.errors import CryptographicError, InvalidArgumentError

logger = logging.getLogger(__name__)

_TAG_SIZE = 16


def _derive_key(pass_phrase: str, salt: bytes) -> bytes:
    """Derive the symmetric key for a pass phrase and salt."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=salt,
        iterations=DERIVATION_ITERATIONS,
    )
    return kdf.derive(pass_phrase.encode("utf-8"))


def encrypt(plain_text: str, pass_phrase: Optional[str]) -> str:
    """
    Encrypt a string with a pass phrase.

    Args:
        plain_text: The text to protect. May be empty.
        pass_phrase: The secret the key is derived from.

    Returns:
        Self-contained cipher text.

    Raises:
        InvalidArgumentError: If no pass phrase is given.
    """
    if not pass_phrase:
        raise InvalidArgumentError("pass_phrase")

    salt = os.urandom(SALT_SIZE)
    nonce = os.urandom(NONCE_SIZE)
    key = _derive_key(pass_phrase, salt)
    cipher_bytes = AESGCM(key).encrypt(nonce, plain_text.encode("utf-8"), None)

    return base64.urlsafe_b64encode(salt + nonce + cipher_bytes).decode("ascii")


def decrypt(cipher_text: str, pass_phrase: Optional[str]) -> str:
    """
    Decrypt a string produced by :func:`encrypt`.

    Args:
        cipher_text: The self-contained cipher text.
        pass_phrase: The pass phrase used for encryption.

    Returns:
        The original plain text.

    Raises:
        InvalidArgumentError: If no pass phrase is given.
        CryptographicError: If the pass phrase does not match or the cipher
            text is malformed or has been tampered with.
    """
    if not pass_phrase:
        raise InvalidArgumentError("pass_phrase")

    try:
        raw = base64.urlsafe_b64decode(cipher_text.encode("ascii"))
    except (binascii.Error, ValueError, UnicodeEncodeError) as e:
        raise CryptographicError(f"Cipher text is not valid: {e}") from e

    if len(raw) < SALT_SIZE + NONCE_SIZE + _TAG_SIZE:
        raise CryptographicError("Cipher text is too short")

    salt = raw[:SALT_SIZE]
    nonce = raw[SALT_SIZE:SALT_SIZE + NONCE_SIZE]
    cipher_bytes = raw[SALT_SIZE + NONCE_SIZE:]

    key = _derive_key(pass_phrase, salt)
    try:
        plain_bytes = AESGCM(key).decrypt(nonce, cipher_bytes, None)
    except InvalidTag as e:
        raise CryptographicError(
            "Decryption failed: pass phrase mismatch or corrupt cipher text"
        ) from e

    return plain_bytes.decode("utf-8")


def encrypt_using(plain_text: str, pass_phrase: Optional[str]) -> str:
    """Encrypt if a pass phrase is configured, otherwise return the text unchanged."""
    return encrypt(plain_text, pass_phrase) if pass_phrase else plain_text


def decrypt_using(cipher_text: str, pass_phrase: Optional[str]) -> str:
    """Decrypt if a pass phrase is configured, otherwise return the text unchanged."""
    return decrypt(cipher_text, pass_phrase) if pass_phrase else cipher_text
