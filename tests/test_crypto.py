"""
Tests for the cipher engine.

Tests cover:
- Key generation format
- Round-trip encryption for both AEAD backends
- Blob layout (salt | nonce | ciphertext+tag)
- Tamper detection and wrong-secret rejection
- Non-canonical base64 rejection
- Generic error messages
"""
import base64
import re
import string

import pytest

from whisper_vault.crypto import (
    SALT_SIZE,
    NONCE_SIZE,
    TAG_SIZE,
    AESGCM,
    decrypt,
    derive_key,
    encrypt,
    generate_key,
)
from whisper_vault.exceptions import DecryptionError, AccessError

B64_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits + "+/"


# --- Test Fixtures ---

def _flip_bit(blob: str, index: int, bit: int = 0) -> str:
    data = bytearray(base64.b64decode(blob))
    data[index] ^= 1 << bit
    return base64.b64encode(bytes(data)).decode("ascii")


@pytest.fixture(scope="module")
def tamper_blob():
    """A blob encrypted under the secret 'right'."""
    return encrypt(b"tamper me", "right")


# --- Test Key Generation ---

class TestGenerateKey:
    """Tests for generate_key."""

    def test_key_is_32_hex_chars(self):
        """Test that generated keys are 32 lowercase hex chars."""
        key = generate_key()
        assert re.fullmatch(r"[0-9a-f]{32}", key)

    def test_keys_are_unique(self):
        """Test that repeated calls yield distinct keys."""
        assert len({generate_key() for _ in range(50)}) == 50


class TestDeriveKey:
    """Tests for PBKDF2 key derivation."""

    def test_derivation_is_deterministic(self):
        """Test same secret and salt derive the same 32-byte key."""
        salt = b"s" * SALT_SIZE
        assert derive_key("secret", salt) == derive_key("secret", salt)
        assert len(derive_key("secret", salt)) == 32

    def test_salt_changes_key(self):
        """Test a different salt derives a different key."""
        assert derive_key("secret", b"a" * 16) != derive_key("secret", b"b" * 16)

    def test_iterations_change_key(self):
        """Test the work factor is part of the derivation."""
        salt = b"s" * SALT_SIZE
        assert derive_key("secret", salt, 100_000) != derive_key("secret", salt, 200_000)


# --- Test Encrypt/Decrypt ---

class TestRoundTrip:
    """Tests for encrypt followed by decrypt."""

    @pytest.mark.parametrize("message", [
        "hello",
        "",
        "multi\nline\tsecret",
        "unicode: ñandú 🦜 密码",
        "x" * 10_000,
    ])
    def test_roundtrip(self, message):
        """Test messages survive encryption with a generated key."""
        key = generate_key()
        blob = encrypt(message.encode("utf-8"), key)
        assert decrypt(blob, key).decode("utf-8") == message

    def test_roundtrip_with_password(self):
        """Test a password works as the secret."""
        blob = encrypt(b"classified", "p@ss")
        assert decrypt(blob, "p@ss") == b"classified"

    def test_chacha20_backend(self):
        """Test the ChaCha20-Poly1305 backend."""
        blob = encrypt(b"hello", "k", backend="chacha20")
        assert decrypt(blob, "k", backend="chacha20") == b"hello"

    def test_custom_iterations(self):
        """Test decrypt must use the iteration count used by encrypt."""
        blob = encrypt(b"hello", "k", iterations=200_000)
        assert decrypt(blob, "k", iterations=200_000) == b"hello"
        with pytest.raises(DecryptionError):
            decrypt(blob, "k")

    def test_fresh_salt_and_nonce_per_call(self):
        """Test each call draws a new salt and nonce."""
        first = base64.b64decode(encrypt(b"same", "k"))
        second = base64.b64decode(encrypt(b"same", "k"))
        assert first[:SALT_SIZE] != second[:SALT_SIZE]
        assert first[SALT_SIZE:SALT_SIZE + NONCE_SIZE] != second[SALT_SIZE:SALT_SIZE + NONCE_SIZE]

    def test_unknown_backend(self):
        """Test an unknown cipher name is rejected."""
        with pytest.raises(ValueError):
            encrypt(b"hello", "k", backend="rot13")


# --- Test Blob Layout ---

class TestBlobLayout:
    """Tests for the salt | nonce | ciphertext+tag wire format."""

    def test_layout_matches_salt_nonce_ciphertext(self):
        """Test the blob decodes into salt, nonce and AES-GCM output."""
        message = b"layout check"
        blob = encrypt(message, "k")
        data = base64.b64decode(blob)
        assert len(data) == SALT_SIZE + NONCE_SIZE + len(message) + TAG_SIZE

        salt = data[:SALT_SIZE]
        nonce = data[SALT_SIZE:SALT_SIZE + NONCE_SIZE]
        key = derive_key("k", salt)
        assert AESGCM(key).decrypt(nonce, data[SALT_SIZE + NONCE_SIZE:], None) == message

    def test_blob_is_ascii_base64(self):
        """Test the blob is a str of strict base64."""
        blob = encrypt(b"hello", "k")
        assert isinstance(blob, str)
        base64.b64decode(blob, validate=True)


# --- Test Failures ---

class TestFailures:
    """Tests for wrong secrets, tampering and malformed blobs."""

    def test_wrong_secret(self, tamper_blob):
        """Test a wrong secret fails to decrypt."""
        with pytest.raises(DecryptionError):
            decrypt(tamper_blob, "wrong")

    @pytest.mark.parametrize("index", [
        0,                                  # salt
        SALT_SIZE - 1,
        SALT_SIZE,                          # nonce
        SALT_SIZE + NONCE_SIZE,             # ciphertext
        SALT_SIZE + NONCE_SIZE + 9 + 3,     # tag
        -1,
    ])
    def test_bit_flip_is_detected(self, tamper_blob, index):
        """Test a single flipped bit anywhere in the blob is detected."""
        with pytest.raises(DecryptionError):
            decrypt(_flip_bit(tamper_blob, index, bit=index % 8 if index >= 0 else 7), "right")

    def test_truncated_blob(self, tamper_blob):
        """Test a blob shorter than salt + nonce + tag is rejected."""
        short = base64.b64encode(base64.b64decode(tamper_blob)[:SALT_SIZE + NONCE_SIZE]).decode()
        with pytest.raises(DecryptionError):
            decrypt(short, "right")

    def test_not_base64(self):
        """Test non-base64 input is rejected."""
        with pytest.raises(DecryptionError):
            decrypt("not base64 at all!", "right")

    def test_non_canonical_base64(self):
        """Test unused trailing bits in the last character are rejected."""
        # 16 + 12 + 2 + 16 = 46 bytes, so the blob ends in '=='
        blob = encrypt(b"hi", "right")
        assert blob.endswith("==")
        last = blob[-3]
        altered = blob[:-3] + B64_ALPHABET[B64_ALPHABET.index(last) ^ 1] + "=="
        assert altered != blob
        assert base64.b64decode(altered) == base64.b64decode(blob)
        with pytest.raises(DecryptionError):
            decrypt(altered, "right")

    def test_message_is_generic(self, tamper_blob):
        """Test wrong-key and tamper failures share one generic message."""
        with pytest.raises(DecryptionError) as wrong_key:
            decrypt(tamper_blob, "wrong")
        with pytest.raises(DecryptionError) as tampered:
            decrypt(_flip_bit(tamper_blob, 30), "right")
        assert str(wrong_key.value) == str(tampered.value)
        assert "right" not in str(wrong_key.value)
        assert isinstance(wrong_key.value, AccessError)
