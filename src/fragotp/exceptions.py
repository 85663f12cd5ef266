"""Exceptions raised by the OTP engine."""


class OTPError(Exception):
    """Base class for fragotp errors."""


class PrimitiveUnavailableError(OTPError):
    """The keyed-hash primitive is missing or does not support the digest."""

    def __init__(self, algorithm: str, reason: str = "cryptographic primitive unavailable"):
        super().__init__(f"HMAC-{algorithm}: {reason}")
        self.algorithm = algorithm


class InvalidParameterError(OTPError, ValueError):
    """A time step, digit count or timestamp is out of range."""
