"""
Vault Crypto Core — Key generation, key derivation and AEAD encryption.

Blob layout (base64 encoded):
    [salt 16B][nonce 12B][encrypted_payload + tag 16B]

The secret used for derivation is either a user password or a key generated
by ``generate_key()`` and shared through the locator fragment. Both are
stretched with PBKDF2-HMAC-SHA256 and a fresh salt on every encryption.

Security Note:
    Never log plaintext, secrets, derived keys or ciphertext values.
    Decryption failures are reported with one generic message whatever
    the cause (wrong secret, truncated or tampered blob).
"""
import base64
import binascii
import logging
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

from .conf import LOGGER_NAME
from .exceptions import EncryptionError, DecryptionError

logger = logging.getLogger(LOGGER_NAME)

SALT_SIZE = 16
NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16
KEY_LENGTH = 32  # AES-256
GENERATED_KEY_BYTES = 16  # 128-bit, rendered as 32 hex chars
MIN_KDF_ITERATIONS = 100_000

CIPHER_BACKENDS = {
    "aesgcm": AESGCM,
    "chacha20": ChaCha20Poly1305,
}


def _get_cipher_cls(backend: str) -> type:
    """Return the AEAD cipher class registered for ``backend``."""
    try:
        return CIPHER_BACKENDS[backend.lower()]
    except KeyError:
        raise ValueError(f"Unsupported cipher backend: {backend}") from None


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------

def generate_key() -> str:
    """Generate a random 128-bit key as a 32-character hex string.

    The key is meant to travel in a URL fragment. Failures of the OS random
    source are not caught.
    """
    return secrets.token_hex(GENERATED_KEY_BYTES)


def derive_key(
    secret: str,
    salt: bytes,
    iterations: int = MIN_KDF_ITERATIONS,
) -> bytes:
    """Derive a 32-byte encryption key using PBKDF2-HMAC-SHA256.

    Args:
        secret: Password or generated key.
        salt: Random salt stored in front of the ciphertext.
        iterations: PBKDF2 work factor.

    Returns:
        32-byte derived key.
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(secret.encode("utf-8"))


# ---------------------------------------------------------------------------
# Encryption
# ---------------------------------------------------------------------------

def encrypt(
    plaintext: bytes,
    secret: str,
    iterations: int = MIN_KDF_ITERATIONS,
    backend: str = "aesgcm",
) -> str:
    """Encrypt plaintext under a key derived from ``secret``.

    Args:
        plaintext: Data to encrypt.
        secret: Password or generated key.
        iterations: PBKDF2 work factor.
        backend: AEAD cipher name (``aesgcm`` or ``chacha20``).

    Returns:
        Base64 blob of ``salt || nonce || ciphertext_with_tag``.

    Raises:
        EncryptionError: If any primitive fails.
    """
    cipher_cls = _get_cipher_cls(backend)
    try:
        salt = secrets.token_bytes(SALT_SIZE)
        nonce = secrets.token_bytes(NONCE_SIZE)
        key = derive_key(secret, salt, iterations)
        ct = cipher_cls(key).encrypt(nonce, plaintext, None)
    except (ValueError, TypeError, OverflowError) as err:
        raise EncryptionError(
            "Failed to encrypt message", details=type(err).__name__,
        ) from err
    return base64.b64encode(salt + nonce + ct).decode("ascii")


def decrypt(
    blob: str,
    secret: str,
    iterations: int = MIN_KDF_ITERATIONS,
    backend: str = "aesgcm",
) -> bytes:
    """Decrypt a blob produced by :func:`encrypt`.

    Args:
        blob: Base64 blob of ``salt || nonce || ciphertext_with_tag``.
        secret: Password or generated key.
        iterations: PBKDF2 work factor used at encryption time.
        backend: AEAD cipher name used at encryption time.

    Returns:
        Decrypted plaintext bytes.

    Raises:
        DecryptionError: On any failure, with a generic message.
    """
    cipher_cls = _get_cipher_cls(backend)
    try:
        data = base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError, TypeError) as err:
        raise DecryptionError() from err
    # reject non-canonical encodings (stray bits in the final character)
    if base64.b64encode(data).decode("ascii") != blob:
        raise DecryptionError()
    _min = SALT_SIZE + NONCE_SIZE + TAG_SIZE
    if len(data) < _min:
        raise DecryptionError()
    salt = data[:SALT_SIZE]
    nonce = data[SALT_SIZE:SALT_SIZE + NONCE_SIZE]
    ct = data[SALT_SIZE + NONCE_SIZE:]
    try:
        key = derive_key(secret, salt, iterations)
        return cipher_cls(key).decrypt(nonce, ct, None)
    except (InvalidTag, ValueError, TypeError) as err:
        raise DecryptionError() from err
