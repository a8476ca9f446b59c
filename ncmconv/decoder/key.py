import logging

from Cryptodome.Cipher import AES
from Cryptodome.Util.Padding import pad, unpad

from .constants import CORE_KEY, KEY_PREFIX, KEY_XOR_MASK
from .exceptions import CryptoBlockLengthError, CryptoPaddingError, KeyTooShortError

logger = logging.getLogger(__name__)


def _xor_mask(data: bytes) -> bytes:
    return bytes(byte ^ KEY_XOR_MASK for byte in data)


def derive_key(key_data: bytes) -> bytes:
    """Recover the per-file keystream key from the container's key section."""
    if not key_data or len(key_data) % AES.block_size:
        raise CryptoBlockLengthError(len(key_data))

    decrypted = AES.new(CORE_KEY, AES.MODE_ECB).decrypt(_xor_mask(key_data))
    try:
        decrypted = unpad(decrypted, AES.block_size)
    except ValueError as e:
        raise CryptoPaddingError() from e

    if len(decrypted) <= len(KEY_PREFIX):
        raise KeyTooShortError()

    if not decrypted.startswith(KEY_PREFIX):
        logger.debug(f"Unexpected key prefix {decrypted[: len(KEY_PREFIX)]!r}")

    return decrypted[len(KEY_PREFIX) :]


def encrypt_key(raw_key: bytes) -> bytes:
    """Build a key section that derive_key turns back into raw_key."""
    encrypted = AES.new(CORE_KEY, AES.MODE_ECB).encrypt(
        pad(KEY_PREFIX + raw_key, AES.block_size)
    )
    return _xor_mask(encrypted)
