"""fragotp - credentials links with live one-time passwords."""

import os
import sys

from .config import Config
from .exceptions import OTPError
from .log import setup_logging


def main() -> None:
    """Main entry point for fragotp.

    If called with arguments, run CLI commands.
    If called without arguments, run TUI.
    """
    try:
        config = Config.load()
    except OTPError as e:
        sys.exit(f"Error: {e}")
    setup_logging(os.environ.get("FRAGOTP_LOG_LEVEL") or config.log_level)

    # Imported here so `import fragotp` does not pull in textual
    from .cli import app as cli_app

    if len(sys.argv) > 1:
        cli_app()
    else:
        from .tui import run_tui

        run_tui()
