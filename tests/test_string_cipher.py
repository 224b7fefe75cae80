"""Unit tests for the string cipher."""
import base64

import pytest

from cloudfs_auth.crypto import decrypt, decrypt_using, encrypt, encrypt_using
from cloudfs_auth.utils.errors import CryptographicError, InvalidArgumentError


class TestStringCipher:
    """Tests for encrypt/decrypt."""

    def test_round_trip(self):
        """Test that decrypting with the same pass phrase restores the text."""
        cipher_text = encrypt("refresh-token-value", "s3cret")
        assert cipher_text != "refresh-token-value"
        assert decrypt(cipher_text, "s3cret") == "refresh-token-value"

    def test_round_trip_empty_and_unicode(self):
        assert decrypt(encrypt("", "pw"), "pw") == ""
        assert decrypt(encrypt("pässwörd ✓", "pw"), "pw") == "pässwörd ✓"

    def test_fresh_salt_per_call(self):
        """Test that the same input never yields the same cipher text."""
        assert encrypt("value", "pw") != encrypt("value", "pw")

    def test_wrong_pass_phrase_fails(self):
        cipher_text = encrypt("value", "right")
        with pytest.raises(CryptographicError):
            decrypt(cipher_text, "wrong")

    def test_tampered_cipher_text_fails(self):
        raw = bytearray(base64.urlsafe_b64decode(encrypt("value", "pw")))
        raw[-1] ^= 0x01
        tampered = base64.urlsafe_b64encode(bytes(raw)).decode("ascii")
        with pytest.raises(CryptographicError):
            decrypt(tampered, "pw")

    def test_malformed_cipher_text_fails(self):
        with pytest.raises(CryptographicError):
            decrypt("not-a-cipher", "pw")
        with pytest.raises(CryptographicError):
            decrypt(base64.urlsafe_b64encode(b"short").decode("ascii"), "pw")

    @pytest.mark.parametrize("pass_phrase", [None, ""])
    def test_missing_pass_phrase(self, pass_phrase):
        with pytest.raises(InvalidArgumentError) as exc_info:
            encrypt("value", pass_phrase)
        assert exc_info.value.argument == "pass_phrase"
        with pytest.raises(InvalidArgumentError):
            decrypt("anything", pass_phrase)


class TestConditionalCipher:
    """Tests for encrypt_using/decrypt_using."""

    def test_passes_through_without_pass_phrase(self):
        assert encrypt_using("plain", None) == "plain"
        assert decrypt_using("plain", None) == "plain"
        assert encrypt_using("plain", "") == "plain"

    def test_encrypts_with_pass_phrase(self):
        cipher_text = encrypt_using("plain", "pw")
        assert cipher_text != "plain"
        assert decrypt_using(cipher_text, "pw") == "plain"

    def test_decrypt_using_does_not_swallow_errors(self):
        with pytest.raises(CryptographicError):
            decrypt_using(encrypt("plain", "pw"), "other")
