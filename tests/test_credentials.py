"""Tests for credentials module."""

from fragotp.credentials import Credentials, encode_credentials, parse_credentials

FULL = "dXNlckBleGFtcGxlLmNvbTpwYXNzOkpCU1dZM0RQRUhQSzNQWFA6Z2hwX3Rva2Vu"
TWO_FIELDS = "dXNlckBleGFtcGxlLmNvbTpzM2NyZXQ6SkJTV1kzRFBFSFBLM1BYUA"


def test_parse_fragment():
    """Test parsing a fragment with all four fields."""
    credentials = parse_credentials("#" + FULL)

    assert credentials == Credentials(
        email="user@example.com",
        password="pass",
        twofa="JBSWY3DPEHPK3PXP",
        token="ghp_token",
    )
    assert credentials.has_twofa


def test_parse_full_url():
    """Test parsing the fragment of a full link."""
    credentials = parse_credentials(f"https://example.org/creds/index.html#{FULL}")
    assert credentials.email == "user@example.com"
    assert credentials.token == "ghp_token"


def test_parse_missing_padding():
    """Test a fragment whose base64 padding was stripped."""
    credentials = parse_credentials(TWO_FIELDS)

    assert credentials.password == "s3cret"
    assert credentials.twofa == "JBSWY3DPEHPK3PXP"
    assert credentials.token == ""


def test_parse_without_secret():
    """Test credentials without a 2FA secret."""
    fragment = encode_credentials(Credentials(email="a@b.c", password="pw"))
    credentials = parse_credentials(fragment)

    assert credentials.email == "a@b.c"
    assert not credentials.has_twofa
    assert credentials.fields() == [("Email", "a@b.c"), ("Password", "pw")]


def test_parse_invalid():
    """Test that unusable fragments yield None."""
    assert parse_credentials("") is None
    assert parse_credentials("#") is None
    assert parse_credentials("https://example.org/creds") is None
    assert parse_credentials("#not base64!") is None
    # base64 of "onlyone" has no ':' separator
    assert parse_credentials("b25seW9uZQ==") is None


def test_parse_non_ascii_fragment():
    """Test that non-ASCII or undecodable text yields None."""
    assert parse_credentials("#привет") is None
    assert parse_credentials("#%FF%FE") is None
    assert parse_credentials("https://example.org/creds#%C3%A9t%C3%A9") is None
    # valid base64 of bytes that are not UTF-8
    assert parse_credentials("#//79") is None


def test_encode_round_trip():
    """Test that encoded credentials parse back."""
    original = Credentials(
        email="user@example.com",
        password="pässword",
        twofa="JBSWY3DPEHPK3PXP",
        token="",
    )
    assert parse_credentials(encode_credentials(original)) == original
