"""Encryption of credentials at rest."""

from .string_cipher import decrypt, decrypt_using, encrypt, encrypt_using

__all__ = ["encrypt", "decrypt", "encrypt_using", "decrypt_using"]
