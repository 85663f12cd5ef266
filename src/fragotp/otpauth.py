"""otpauth:// provisioning URLs and QR image links."""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, quote, unquote, urlencode, urlparse

from . import totp

logger = logging.getLogger(__name__)

DEFAULT_QR_SERVICE_URL = "https://api.qrserver.com/v1/create-qr-code/"


@dataclass
class OTPDescriptor:
    """Structured form of an otpauth://totp URL."""

    account: str
    secret: str
    issuer: str = ""
    algorithm: str = totp.DEFAULT_ALGORITHM
    digits: int = totp.DEFAULT_DIGITS
    period: int = totp.DEFAULT_TIME_STEP

    @property
    def label(self) -> str:
        """Display label, ``issuer:account`` when an issuer is set."""
        if self.issuer:
            return f"{self.issuer}:{self.account}"
        return self.account

    def code(self, now: Optional[float] = None) -> str:
        """Generate the code for this descriptor at the given time."""
        return totp.generate(
            self.secret,
            time_step=self.period,
            digits=self.digits,
            now=now,
            algorithm=self.algorithm,
        )


def build_otpauth_url(descriptor: OTPDescriptor) -> str:
    """Convert a descriptor to an otpauth URL.

    Issuer and account are percent-encoded. Algorithm, digits and period
    are only written when they differ from the defaults.

    Args:
        descriptor: The descriptor to encode

    Returns:
        otpauth URL string
    """
    label = quote(descriptor.account, safe="")
    if descriptor.issuer:
        label = f"{quote(descriptor.issuer, safe='')}:{label}"

    params = [("secret", descriptor.secret)]
    if descriptor.issuer:
        params.append(("issuer", descriptor.issuer))
    if totp.normalize_algorithm(descriptor.algorithm) != totp.DEFAULT_ALGORITHM:
        params.append(("algorithm", descriptor.algorithm.upper()))
    if descriptor.digits != totp.DEFAULT_DIGITS:
        params.append(("digits", str(descriptor.digits)))
    if descriptor.period != totp.DEFAULT_TIME_STEP:
        params.append(("period", str(descriptor.period)))

    query = urlencode(params, safe="", quote_via=quote)
    return f"otpauth://totp/{label}?{query}"


def parse_otpauth_url(url: str) -> Optional[OTPDescriptor]:
    """Parse an otpauth URL into a descriptor.

    Missing optional parameters fall back to SHA1, 6 digits and a 30
    second period. When the issuer parameter is absent the label prefix
    before a literal ``:`` is used instead; an encoded ``%3A`` is part of
    the account unless the issuer parameter names the prefix.

    Args:
        url: The otpauth URL string

    Returns:
        The descriptor, or None if the URL is malformed, is not a totp URL
        with a label and a secret, or has digits or a period out of range
    """
    try:
        parsed = urlparse(url.strip())
        params = parse_qs(parsed.query)
    except ValueError as e:
        logger.debug("Malformed URL %r: %s", url, e)
        return None

    if parsed.scheme.lower() != "otpauth" or parsed.netloc.lower() != "totp":
        logger.debug("Not an otpauth://totp URL: %r", url)
        return None

    raw_label = parsed.path.lstrip("/")
    secret = params.get("secret", [""])[0]
    if not raw_label or not secret:
        logger.debug("otpauth URL without label or secret")
        return None

    issuer = params.get("issuer", [None])[0]

    # Split before decoding so an encoded ':' stays inside its part
    if ":" in raw_label:
        prefix, _, account = raw_label.partition(":")
        prefix, account = unquote(prefix), unquote(account).lstrip()
    else:
        prefix, account = "", unquote(raw_label)
        # An encoded ':' only separates an issuer named by the parameter
        if issuer and account.startswith(issuer + ":"):
            prefix, account = issuer, account[len(issuer) + 1 :].lstrip()

    try:
        digits = int(params.get("digits", [str(totp.DEFAULT_DIGITS)])[0])
        period = int(params.get("period", [str(totp.DEFAULT_TIME_STEP)])[0])
        totp.check_digits(digits)
        totp.check_time_step(period)
    except ValueError as e:
        logger.debug("otpauth URL with invalid digits or period: %s", e)
        return None

    return OTPDescriptor(
        account=account,
        secret=secret,
        issuer=prefix if issuer is None else issuer,
        algorithm=params.get("algorithm", [totp.DEFAULT_ALGORITHM])[0].upper(),
        digits=digits,
        period=period,
    )


def qr_image_url(
    otp_url: str,
    service_url: str = DEFAULT_QR_SERVICE_URL,
    size: int = 200,
) -> str:
    """URL of a QR code image for the otpauth URL.

    The image itself is rendered by an external service; this only builds
    the request, light modules on the dark page background.

    Args:
        otp_url: The otpauth URL to encode in the QR code
        service_url: Base URL of the QR rendering service
        size: Edge length of the image in pixels

    Returns:
        The image URL
    """
    params = {
        "size": f"{size}x{size}",
        "data": otp_url,
        "bgcolor": "21262d",
        "color": "ffffff",
        "format": "svg",
        "margin": "10",
    }
    query = urlencode(params, safe="", quote_via=quote)
    return f"{service_url}?{query}"
