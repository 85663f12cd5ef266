"""TOTP token generation (RFC 6238 on top of RFC 4226)."""

import math
import time
from typing import Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, hmac

from . import base32
from .exceptions import InvalidParameterError, PrimitiveUnavailableError

DEFAULT_TIME_STEP = 30
DEFAULT_DIGITS = 6
DEFAULT_ALGORITHM = "SHA1"
MAX_DIGITS = 10

_DIGESTS = {
    "SHA1": hashes.SHA1,
    "SHA256": hashes.SHA256,
    "SHA512": hashes.SHA512,
}


def normalize_algorithm(algorithm: str) -> str:
    """Return the canonical digest name ("sha-256" -> "SHA256")."""
    return algorithm.upper().replace("-", "").replace("_", "")


def keyed_hash(algorithm: str, key: bytes, message: bytes) -> bytes:
    """Compute HMAC of message with the given digest.

    Args:
        algorithm: Digest name, SHA1, SHA256 or SHA512
        key: Raw key bytes
        message: Message to authenticate

    Returns:
        The MAC bytes

    Raises:
        PrimitiveUnavailableError: If the digest is unknown or the backend
            refuses it
    """
    name = normalize_algorithm(algorithm)
    digest = _DIGESTS.get(name)
    if digest is None:
        raise PrimitiveUnavailableError(algorithm, "unsupported digest")

    # HMAC zero-pads short keys, so an empty key equals a single zero byte
    key = key or b"\x00"
    try:
        mac = hmac.HMAC(key, digest())
        mac.update(message)
        return mac.finalize()
    except UnsupportedAlgorithm as e:
        raise PrimitiveUnavailableError(name, str(e)) from e


def check_time_step(time_step: int) -> None:
    """Raise InvalidParameterError unless time_step is a positive integer."""
    if isinstance(time_step, bool) or not isinstance(time_step, int) or time_step <= 0:
        raise InvalidParameterError(f"time step must be a positive integer, got {time_step!r}")


def check_digits(digits: int) -> None:
    """Raise InvalidParameterError unless digits is in 1..MAX_DIGITS."""
    if isinstance(digits, bool) or not isinstance(digits, int) or not 1 <= digits <= MAX_DIGITS:
        raise InvalidParameterError(f"digits must be between 1 and {MAX_DIGITS}, got {digits!r}")


def unix_time(now: Optional[float] = None) -> int:
    """Whole seconds since the epoch, truncated downward.

    Args:
        now: Timestamp to use, defaults to the current time

    Returns:
        Integer Unix time
    """
    if now is None:
        now = time.time()
    seconds = math.floor(now)
    if seconds < 0:
        raise InvalidParameterError(f"time must not be negative, got {now!r}")
    return seconds


def counter_at(now: Optional[float] = None, time_step: int = DEFAULT_TIME_STEP) -> int:
    """Number of whole time steps elapsed since the epoch."""
    check_time_step(time_step)
    return unix_time(now) // time_step


def counter_bytes(counter: int) -> bytes:
    """Encode a counter as 8 big-endian unsigned bytes."""
    if not 0 <= counter < 1 << 64:
        raise InvalidParameterError(f"counter out of 64-bit range: {counter!r}")
    return counter.to_bytes(8, "big")


def truncate(mac: bytes) -> int:
    """Dynamic truncation of an HMAC result into a 31-bit integer.

    The low nibble of the last byte selects a 4-byte window; the top bit
    of that window is cleared.
    """
    offset = mac[-1] & 0x0F
    return int.from_bytes(mac[offset : offset + 4], "big") & 0x7FFFFFFF


def hotp(
    key: bytes,
    counter: int,
    digits: int = DEFAULT_DIGITS,
    algorithm: str = DEFAULT_ALGORITHM,
) -> str:
    """Generate an HOTP code for an explicit counter.

    Args:
        key: Raw key bytes
        counter: Moving factor
        digits: Number of digits in the code
        algorithm: HMAC digest name

    Returns:
        The zero-padded decimal code
    """
    check_digits(digits)
    mac = keyed_hash(algorithm, key, counter_bytes(counter))
    code = truncate(mac) % 10**digits
    return str(code).zfill(digits)


def generate(
    secret: str,
    time_step: int = DEFAULT_TIME_STEP,
    digits: int = DEFAULT_DIGITS,
    now: Optional[float] = None,
    algorithm: str = DEFAULT_ALGORITHM,
) -> str:
    """Generate the TOTP code for a base32 secret.

    An empty or entirely invalid secret still yields a code; callers that
    need a real key must check the secret themselves.

    Args:
        secret: Base32 encoded shared secret
        time_step: Window length in seconds
        digits: Number of digits in the code
        now: Unix time to generate for, defaults to the current time
        algorithm: HMAC digest name

    Returns:
        The current code as a string of exactly ``digits`` characters

    Raises:
        InvalidParameterError: If time_step, digits or now is out of range
        PrimitiveUnavailableError: If HMAC with the digest is unavailable
    """
    key = base32.decode(secret)
    return hotp(key, counter_at(now, time_step), digits=digits, algorithm=algorithm)


def get_time_remaining(time_step: int = DEFAULT_TIME_STEP, now: Optional[float] = None) -> int:
    """Get seconds remaining until the next code.

    Returns:
        A value in ``[1, time_step]``; exactly ``time_step`` on a boundary
    """
    check_time_step(time_step)
    return time_step - (unix_time(now) % time_step)


def window_start(now: float, time_step: int = DEFAULT_TIME_STEP) -> int:
    """Unix time at which the window containing ``now`` began."""
    return counter_at(now, time_step) * time_step


def format_code(code: str) -> str:
    """Split a code in two groups for reading ("123456" -> "123 456")."""
    if len(code) < 6:
        return code
    half = len(code) // 2
    return f"{code[:half]} {code[half:]}"
