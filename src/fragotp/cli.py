"""CLI commands for fragotp using cyclopts."""

import asyncio
import sys
import time
from typing import Optional, Annotated
import cyclopts
from rich.console import Console, Group
from rich.live import Live
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from . import totp
from .config import Config
from .credentials import Credentials, encode_credentials, parse_credentials
from .driver import Frame, OTPSession, RefreshLoop, decay_color
from .exceptions import OTPError
from .otpauth import OTPDescriptor, build_otpauth_url, parse_otpauth_url, qr_image_url

app = cyclopts.App(name="fragotp", help="Credentials link viewer with live one-time passwords")
console = Console()


def fail(message: str) -> None:
    """Print an error and exit with status 1."""
    console.print(f"[red]Error: {message}[/red]")
    sys.exit(1)


def load_config() -> Config:
    """Load the configuration or exit with an error."""
    try:
        return Config.load()
    except OTPError as e:
        fail(str(e))


def load_credentials(fragment: str) -> Credentials:
    """Parse a fragment or exit with an error."""
    credentials = parse_credentials(fragment)
    if credentials is None:
        fail("No credentials found; expected base64 data after '#'")
    return credentials


def render_frame(frame: Frame, label: str = "") -> Group:
    """Build the renderable shown by `watch` for one frame."""
    if frame.code is None:
        code = Text(f"--- ---  {frame.error or ''}", style="bold red")
    else:
        code = Text(totp.format_code(frame.code), style="bold green")
    if label:
        code = Text.assemble((f"{label}  ", "cyan"), code)
    color = decay_color(frame.fraction)
    bar = ProgressBar(total=1.0, completed=frame.fraction, complete_style=color, finished_style=color)
    return Group(code, bar, Text(f"{frame.remaining}s remaining", style="dim"))


@app.command
def show(
    fragment: Annotated[str, cyclopts.Parameter(help="Credentials link or #fragment")],
) -> None:
    """Show credentials, the current code and the QR image link."""
    config = load_config()
    credentials = load_credentials(fragment)

    table = Table(title="Credentials")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    for name, value in credentials.fields():
        table.add_row(name, value)
    console.print(table)

    if not credentials.has_twofa:
        return

    try:
        code = totp.generate(
            credentials.twofa,
            time_step=config.time_step,
            digits=config.digits,
            algorithm=config.algorithm,
        )
    except OTPError as e:
        fail(str(e))

    remaining = totp.get_time_remaining(config.time_step)
    console.print(f"Code: [bold green]{totp.format_code(code)}[/bold green] ({remaining}s remaining)")

    descriptor = OTPDescriptor(
        account=credentials.email,
        secret=credentials.twofa,
        issuer=config.issuer,
        algorithm=config.algorithm,
        digits=config.digits,
        period=config.time_step,
    )
    console.print(f"QR: {qr_image_url(build_otpauth_url(descriptor), config.qr_service_url)}")


@app.command
def code(
    secret: Annotated[str, cyclopts.Parameter(help="Base32 shared secret")],
    at: Annotated[
        Optional[float], cyclopts.Parameter(help="Unix time to generate for")
    ] = None,
    digits: Annotated[Optional[int], cyclopts.Parameter(help="Number of digits")] = None,
    period: Annotated[
        Optional[int], cyclopts.Parameter(help="Time step in seconds")
    ] = None,
    algorithm: Annotated[Optional[str], cyclopts.Parameter(help="Hash algorithm")] = None,
) -> None:
    """Print the code for a secret."""
    config = load_config()
    try:
        token = totp.generate(
            secret,
            time_step=config.time_step if period is None else period,
            digits=config.digits if digits is None else digits,
            now=at,
            algorithm=algorithm or config.algorithm,
        )
    except OTPError as e:
        fail(str(e))

    # Plain output for piping
    print(token)


@app.command
def remaining(
    period: Annotated[
        Optional[int], cyclopts.Parameter(help="Time step in seconds")
    ] = None,
    at: Annotated[Optional[float], cyclopts.Parameter(help="Unix time")] = None,
) -> None:
    """Print seconds left until the next code."""
    config = load_config()
    try:
        print(totp.get_time_remaining(config.time_step if period is None else period, at))
    except OTPError as e:
        fail(str(e))


@app.command
def uri(
    secret: Annotated[str, cyclopts.Parameter(help="Base32 shared secret")],
    account: Annotated[str, cyclopts.Parameter(help="Account name")],
    issuer: Annotated[Optional[str], cyclopts.Parameter(help="Issuer name")] = None,
    digits: Annotated[Optional[int], cyclopts.Parameter(help="Number of digits")] = None,
    period: Annotated[
        Optional[int], cyclopts.Parameter(help="Time step in seconds")
    ] = None,
    algorithm: Annotated[Optional[str], cyclopts.Parameter(help="Hash algorithm")] = None,
    qr: Annotated[bool, cyclopts.Parameter(help="Print the QR image link instead")] = False,
) -> None:
    """Print the otpauth URL for a secret."""
    config = load_config()
    descriptor = OTPDescriptor(
        account=account,
        secret=secret,
        issuer=config.issuer if issuer is None else issuer,
        algorithm=algorithm or config.algorithm,
        digits=config.digits if digits is None else digits,
        period=config.time_step if period is None else period,
    )
    try:
        totp.check_digits(descriptor.digits)
        totp.check_time_step(descriptor.period)
    except OTPError as e:
        fail(str(e))
    url = build_otpauth_url(descriptor)
    print(qr_image_url(url, config.qr_service_url) if qr else url)


@app.command(name="parse-uri")
def parse_uri(
    url: Annotated[str, cyclopts.Parameter(help="otpauth:// URL")],
) -> None:
    """Show the fields of an otpauth URL and its current code."""
    descriptor = parse_otpauth_url(url)
    if descriptor is None:
        fail("Not a valid otpauth://totp URL")

    table = Table(title=descriptor.label)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Issuer", descriptor.issuer)
    table.add_row("Account", descriptor.account)
    table.add_row("Secret", descriptor.secret)
    table.add_row("Algorithm", descriptor.algorithm)
    table.add_row("Digits", str(descriptor.digits))
    table.add_row("Period", str(descriptor.period))
    try:
        table.add_row("Code", totp.format_code(descriptor.code()))
    except OTPError as e:
        table.add_row("Code", f"[red]{e}[/red]")
    console.print(table)


@app.command
def link(
    email: Annotated[str, cyclopts.Parameter(help="Login email")],
    password: Annotated[str, cyclopts.Parameter(help="Password")],
    secret: Annotated[str, cyclopts.Parameter(help="Base32 2FA secret")] = "",
    token: Annotated[str, cyclopts.Parameter(help="Personal access token")] = "",
) -> None:
    """Print the #fragment carrying the given credentials."""
    credentials = Credentials(email=email, password=password, twofa=secret, token=token)
    print("#" + encode_credentials(credentials))


async def _watch(loop: RefreshLoop, seconds: Optional[float]) -> None:
    if seconds:
        asyncio.get_running_loop().call_later(seconds, loop.cancel)
    await loop.run()


@app.command
def watch(
    secret: Annotated[str, cyclopts.Parameter(help="Base32 shared secret")],
    seconds: Annotated[
        Optional[float], cyclopts.Parameter(help="Stop after this many seconds")
    ] = None,
    label: Annotated[str, cyclopts.Parameter(help="Label shown next to the code")] = "",
) -> None:
    """Show a live code with a countdown bar until Ctrl+C."""
    config = load_config()
    try:
        session = OTPSession(
            secret,
            time_step=config.time_step,
            digits=config.digits,
            algorithm=config.algorithm,
        )
        session.tick(time.time())
    except OTPError as e:
        fail(str(e))

    with Live(console=console, refresh_per_second=config.frame_rate, transient=True) as live:
        loop = RefreshLoop(
            session,
            lambda frame: live.update(render_frame(frame, label)),
            frame_interval=config.frame_interval,
        )
        try:
            asyncio.run(_watch(loop, seconds))
        except KeyboardInterrupt:
            loop.cancel()


@app.command
def tui(
    fragment: Annotated[
        Optional[str], cyclopts.Parameter(help="Credentials link or #fragment")
    ] = None,
) -> None:
    """Open the interactive viewer."""
    from .tui import run_tui

    run_tui(fragment)

