"""AES-CBC hex envelope exchanged with the payment processor.

The processor pre-shares a 32-character secret key and a 16-character IV and
expects the same IV on every message. That reuse is an external protocol
constraint, not something to copy elsewhere.

Sealing pads with standard PKCS#7 against the 16-byte AES block. Opening does
not undo PKCS#7: it applies the processor's own strip rule, which reads the
pad length from the last decoded character and sanity-checks it against a
32-character threshold. The two sides are asymmetric on purpose; changing
either breaks interoperability with the live processor.
"""

import binascii

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from paybridge.common.config import IV_KEY_LENGTH, SECRET_KEY_LENGTH
from paybridge.common.errors import ConfigurationError, EncodingError, PaddingError

BLOCK_SIZE_BITS = 128
STRIP_BLOCK_SIZE = 32


class CipherEnvelope:
    """Seals and opens processor payloads with fixed key material."""

    def __init__(self, secret_key: str, iv_key: str) -> None:
        key = secret_key.encode("utf-8")
        iv = iv_key.encode("utf-8")
        if len(key) != SECRET_KEY_LENGTH:
            raise ConfigurationError(f"secret key must be {SECRET_KEY_LENGTH} bytes, got {len(key)}")
        if len(iv) != IV_KEY_LENGTH:
            raise ConfigurationError(f"iv key must be {IV_KEY_LENGTH} bytes, got {len(iv)}")
        self._key = key
        self._iv = iv

    @classmethod
    def from_config(cls, config) -> "CipherEnvelope":
        return cls(config.secret_key, config.iv_key)

    def _cipher(self) -> Cipher:
        return Cipher(algorithms.AES(self._key), modes.CBC(self._iv))

    def seal(self, plaintext: str) -> str:
        """Encrypt `plaintext` and return lowercase hex ciphertext."""

        try:
            data = plaintext.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise EncodingError("plaintext is not valid UTF-8", body=plaintext) from exc

        padder = padding.PKCS7(BLOCK_SIZE_BITS).padder()
        padded = padder.update(data) + padder.finalize()
        encryptor = self._cipher().encryptor()
        return (encryptor.update(padded) + encryptor.finalize()).hex()

    def open(self, hex_ciphertext: str) -> str:
        """Decrypt hex ciphertext and strip padding the way the processor does."""

        try:
            raw = bytes.fromhex(hex_ciphertext.strip())
        except (ValueError, TypeError, AttributeError) as exc:
            raise EncodingError("ciphertext is not valid hex", body=hex_ciphertext) from exc

        decryptor = self._cipher().decryptor()
        try:
            decrypted = decryptor.update(raw) + decryptor.finalize()
        except ValueError as exc:
            raise EncodingError("ciphertext is not a whole number of blocks", body=hex_ciphertext) from exc

        try:
            text = decrypted.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise EncodingError("decrypted bytes are not valid UTF-8", body=hex_ciphertext) from exc

        return strip_padding(text)


def strip_padding(text: str) -> str:
    """Processor strip rule: drop `ord(text[-1])` trailing characters."""

    if len(text) < STRIP_BLOCK_SIZE:
        raise PaddingError(f"invalid data length, block size must be {STRIP_BLOCK_SIZE}")
    pad_length = ord(text[-1])
    if pad_length > STRIP_BLOCK_SIZE:
        raise PaddingError("padding value out of range")
    return text[: len(text) - pad_length]
