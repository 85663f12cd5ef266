"""RFC 4648 base32 codec for shared secrets.

Decoding is lenient: anything outside the alphabet is dropped before the
bits are read, so padding, spaces and dashes in a copied secret are
harmless.
"""

import re

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"

_INVALID = re.compile(r"[^A-Z2-7]")


def normalize(text: str) -> str:
    """Uppercase the text and keep only base32 symbols.

    Args:
        text: Raw base32 text, possibly with padding or separators

    Returns:
        The cleaned symbol string
    """
    return _INVALID.sub("", text.upper())


def decode(text: str) -> bytes:
    """Decode a base32 string into raw key bytes.

    Trailing bits that do not fill a whole byte are discarded.

    Args:
        text: Base32 text

    Returns:
        The decoded bytes, empty if no valid symbols were found
    """
    output = bytearray()
    buffer = 0
    bits = 0

    for char in normalize(text):
        buffer = (buffer << 5) | ALPHABET.index(char)
        bits += 5
        if bits >= 8:
            bits -= 8
            output.append((buffer >> bits) & 0xFF)
            buffer &= (1 << bits) - 1

    return bytes(output)


def encode(data: bytes, padding: bool = True) -> str:
    """Encode bytes as base32.

    Args:
        data: Bytes to encode
        padding: Whether to pad the output to a multiple of 8 symbols

    Returns:
        The base32 string
    """
    symbols = []
    buffer = 0
    bits = 0

    for byte in data:
        buffer = (buffer << 8) | byte
        bits += 8
        while bits >= 5:
            bits -= 5
            symbols.append(ALPHABET[(buffer >> bits) & 0x1F])
        buffer &= (1 << bits) - 1

    if bits:
        symbols.append(ALPHABET[(buffer << (5 - bits)) & 0x1F])

    result = "".join(symbols)
    if padding and len(result) % 8:
        result += "=" * (8 - len(result) % 8)
    return result
