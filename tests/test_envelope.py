"""Unit tests for the AES-CBC hex envelope and its processor strip rule."""

import json

import pytest
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from paybridge.common.errors import ConfigurationError, EncodingError, PaddingError
from paybridge.services.checkout.envelope import CipherEnvelope, strip_padding

SECRET_KEY = "PkW64zMe5NVdrlPVNnjo2Jy9nOb7v1Xg"
IV_KEY = "5NVdrlPVNnjo2Jy9"


def encrypt_unpadded(raw: bytes) -> str:
    """Encrypt block-aligned bytes as-is so the decrypted tail is fully controlled."""

    encryptor = Cipher(algorithms.AES(SECRET_KEY.encode()), modes.CBC(IV_KEY.encode())).encryptor()
    return (encryptor.update(raw) + encryptor.finalize()).hex()


@pytest.mark.parametrize(
    "plaintext",
    [
        "0123456789abcdef",
        json.dumps({"status": True, "response": {"data": "abc123"}}),
        "x" * 1000,
        "مرحبا بالعالم، هذا اختبار للترميز",
    ],
)
def test_round_trip(envelope, plaintext):
    assert envelope.open(envelope.seal(plaintext)) == plaintext


def test_seal_is_lowercase_hex_of_whole_blocks(envelope):
    sealed = envelope.seal('{"merchantCode":"842217"}')
    assert sealed == sealed.lower()
    assert len(sealed) % 32 == 0
    bytes.fromhex(sealed)


def test_fixed_iv_makes_seal_deterministic(envelope):
    assert envelope.seal("same payload text!") == envelope.seal("same payload text!")


def test_different_key_material_changes_ciphertext(envelope):
    other = CipherEnvelope("A" * 32, "B" * 16)
    assert other.seal("same payload text!") != envelope.seal("same payload text!")


def test_open_tolerates_surrounding_whitespace(envelope):
    sealed = envelope.seal("0123456789abcdefghij")
    assert envelope.open(f"  {sealed}\n") == "0123456789abcdefghij"


@pytest.mark.parametrize("plaintext", ["", "short", "fifteen chars!!"])
def test_short_plaintext_fails_strip_rule(envelope, plaintext):
    with pytest.raises(PaddingError):
        envelope.open(envelope.seal(plaintext))


def test_pad_value_above_limit_is_rejected(envelope):
    with pytest.raises(PaddingError):
        envelope.open(encrypt_unpadded(b"a" * 31 + bytes([33])))


def test_pad_value_at_limit_strips_everything(envelope):
    assert envelope.open(encrypt_unpadded(b"a" * 31 + bytes([32]))) == ""


def test_pad_value_zero_keeps_text(envelope):
    raw = b"a" * 31 + bytes([0])
    assert envelope.open(encrypt_unpadded(raw)) == raw.decode()


def test_pad_value_above_block_size_but_within_limit(envelope):
    # 20 > 16 is never produced by PKCS#7 but the processor accepts it.
    raw = b"b" * 44 + bytes([20] * 4)
    assert envelope.open(encrypt_unpadded(raw)) == "b" * 28


@pytest.mark.parametrize(
    "text,expected",
    [
        ("a" * 31 + chr(1), "a" * 31),
        ("a" * 16 + chr(16) * 16, "a" * 16),
        ("a" * 40 + chr(0), "a" * 40 + chr(0)),
    ],
)
def test_strip_padding(text, expected):
    assert strip_padding(text) == expected


def test_strip_padding_rejects_short_text():
    with pytest.raises(PaddingError):
        strip_padding("a" * 30 + chr(1))


@pytest.mark.parametrize("bad", ["zz", "abc", "not hex at all"])
def test_open_rejects_non_hex(envelope, bad):
    with pytest.raises(EncodingError):
        envelope.open(bad)


def test_open_rejects_partial_block(envelope):
    with pytest.raises(EncodingError):
        envelope.open("00" * 17)


def test_open_rejects_invalid_utf8(envelope):
    with pytest.raises(EncodingError):
        envelope.open(encrypt_unpadded(b"\xff" * 32))


@pytest.mark.parametrize("secret_key,iv_key", [("short", IV_KEY), (SECRET_KEY, "short"), ("k" * 31, "i" * 16)])
def test_rejects_wrong_key_material_length(secret_key, iv_key):
    with pytest.raises(ConfigurationError):
        CipherEnvelope(secret_key, iv_key)


def test_seal_rejects_text_that_is_not_utf8_encodable(envelope):
    with pytest.raises(EncodingError):
        envelope.seal("\ud800" + "a" * 40)
