"""Tests for base32 module."""

import base64
import os

from fragotp.base32 import decode, encode, normalize


def test_decode_known_secret():
    """Test decoding a well-known secret."""
    assert decode("JBSWY3DPEHPK3PXP") == b"Hello!\xde\xad\xbe\xef"


def test_decode_rfc_seed():
    """Test decoding the RFC 6238 SHA1 seed."""
    assert decode("GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ") == b"12345678901234567890"


def test_decode_ignores_case_padding_and_separators():
    """Test that lowercase, padding, spaces and dashes are ignored."""
    expected = decode("JBSWY3DPEHPK3PXP")

    assert decode("jbswy3dpehpk3pxp") == expected
    assert decode("JBSW Y3DP EHPK 3PXP") == expected
    assert decode("JBSW-Y3DP-EHPK-3PXP") == expected
    assert decode("MZXW6===") == b"foo"


def test_decode_empty_and_invalid():
    """Test that input without valid symbols decodes to no bytes."""
    assert decode("") == b""
    assert decode("0189!@#=") == b""


def test_decode_discards_trailing_bits():
    """Test that a partial trailing byte is dropped."""
    # 2 symbols = 10 bits = one byte plus 2 leftover bits
    assert decode("MY") == b"f"
    assert decode("M") == b""


def test_decode_same_after_normalize():
    """Test that stripping invalid characters first changes nothing."""
    messy = " jbsw-y3dp=ehpk.3pxp 0189 "
    assert normalize(messy) == "JBSWY3DPEHPK3PXP"
    assert decode(normalize(messy)) == decode(messy)


def test_encode_matches_stdlib():
    """Test encoding against the standard library encoder."""
    for length in range(0, 21):
        data = os.urandom(length)
        assert encode(data) == base64.b32encode(data).decode()


def test_encode_without_padding():
    """Test unpadded output."""
    assert encode(b"foo", padding=False) == "MZXW6"
    assert encode(b"foo") == "MZXW6==="


def test_decode_inverts_encode():
    """Test that decode undoes encode for any length."""
    for length in (5, 10, 20, 32, 64, 1, 3, 7):
        data = os.urandom(length)
        assert decode(encode(data)) == data
