"""Credentials carried in a URL fragment.

The fragment is ``base64(email:password:2fa:token)``; trailing fields may
be missing.
"""

import base64
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote, urlparse

logger = logging.getLogger(__name__)


@dataclass
class Credentials:
    """Account credentials decoded from a fragment."""

    email: str
    password: str
    twofa: str = ""
    token: str = ""

    @property
    def has_twofa(self) -> bool:
        """Whether a shared secret for codes is present."""
        return bool(self.twofa)

    def fields(self) -> list[tuple[str, str]]:
        """Non-empty fields as (name, value) pairs, in display order."""
        pairs = [
            ("Email", self.email),
            ("Password", self.password),
            ("2FA Secret", self.twofa),
            ("Personal Access Token", self.token),
        ]
        return [(name, value) for name, value in pairs if value]


def _fragment_of(value: str) -> str:
    value = value.strip()
    if "://" in value:
        return urlparse(value).fragment
    return value.lstrip("#")


def parse_credentials(value: str) -> Optional[Credentials]:
    """Parse credentials from a fragment or a URL carrying one.

    Args:
        value: ``#fragment``, a bare fragment, or a full URL

    Returns:
        Credentials, or None if the fragment is empty, is not base64 text,
        or has fewer than two fields
    """
    fragment = unquote(_fragment_of(value))
    if not fragment:
        return None

    padded = fragment + "=" * (-len(fragment) % 4)
    try:
        decoded = base64.b64decode(padded, validate=True).decode("utf-8")
    except ValueError as e:
        logger.debug("Failed to parse credentials: %s", e)
        return None

    parts = decoded.split(":")
    if len(parts) < 2:
        logger.debug("Credentials fragment has %d field(s), need at least 2", len(parts))
        return None

    parts += [""] * (4 - len(parts))
    return Credentials(email=parts[0], password=parts[1], twofa=parts[2], token=parts[3])


def encode_credentials(credentials: Credentials) -> str:
    """Build the fragment (without ``#``) for the given credentials.

    Empty trailing fields are left out.
    """
    parts = [credentials.email, credentials.password, credentials.twofa, credentials.token]
    while len(parts) > 2 and not parts[-1]:
        parts.pop()
    return base64.b64encode(":".join(parts).encode("utf-8")).decode("ascii")
