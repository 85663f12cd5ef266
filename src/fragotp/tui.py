"""TUI interface for fragotp using Textual."""

import os
import subprocess
import sys
import time
from typing import Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.timer import Timer
from textual.widgets import DataTable, Footer, Header, Label, ProgressBar
from textual import on

from . import totp
from .config import Config
from .credentials import Credentials, parse_credentials
from .driver import Frame, OTPSession, decay_color
from .exceptions import OTPError
from .otpauth import OTPDescriptor, build_otpauth_url, qr_image_url

PROGRESS_STEPS = 1000


class CredentialsApp(App):
    """Credentials viewer with a live code."""

    CSS = """
    #error {
        text-align: center;
        text-style: bold;
        color: $error;
        padding: 1 2;
    }

    DataTable {
        height: auto;
        max-height: 50%;
    }

    DataTable > .datatable--cursor {
        background: $secondary;
    }

    #code {
        width: 100%;
        text-align: center;
        text-style: bold;
        padding: 1 0 0 0;
    }

    #countdown {
        width: 100%;
        align: center middle;
        padding: 0 2;
    }

    #hint, #qr {
        width: 100%;
        text-align: center;
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("enter", "select_row", "Copy", show=True),
        Binding("ctrl+y", "copy_code", "Copy Code", show=True),
        Binding("ctrl+q", "quit", "Quit", show=True),
    ]

    def __init__(self, credentials: Optional[Credentials], config: Optional[Config] = None):
        """Initialize the TUI app.

        Args:
            credentials: Parsed credentials, None when the link had none
            config: Application configuration
        """
        super().__init__()
        self.credentials = credentials
        self.app_config = config or Config()
        self.session: Optional[OTPSession] = None
        self.frame_timer: Optional[Timer] = None
        if credentials and credentials.has_twofa:
            self.session = OTPSession(
                credentials.twofa,
                time_step=self.app_config.time_step,
                digits=self.app_config.digits,
                algorithm=self.app_config.algorithm,
            )

    def compose(self) -> ComposeResult:
        """Compose the main UI."""
        yield Header()
        if self.credentials is None:
            yield Label("No credentials found: add base64 data after '#' in the link", id="error")
        else:
            yield DataTable(id="credentials-table")
            if self.session:
                yield Label("--- ---", id="code")
                yield ProgressBar(
                    total=PROGRESS_STEPS,
                    show_eta=False,
                    show_percentage=False,
                    id="countdown",
                )
                yield Label("Ctrl+Y to copy the code", id="hint")
                yield Label(self.qr_link(), id="qr")
        yield Footer()

    def on_mount(self) -> None:
        """Populate the table and start the countdown."""
        if self.credentials is None:
            return

        table = self.query_one("#credentials-table", DataTable)
        table.cursor_type = "row"
        table.add_column("Field", key="field")
        table.add_column("Value", key="value")
        for name, value in self.credentials.fields():
            table.add_row(name, value, key=name)
        table.focus()

        if self.session:
            self.update_frame()
            self.frame_timer = self.set_interval(self.app_config.frame_interval, self.update_frame)

    def on_unmount(self) -> None:
        """Stop the countdown timer."""
        if self.frame_timer is not None:
            self.frame_timer.stop()
            self.frame_timer = None

    def qr_link(self) -> str:
        """QR image link for the current secret."""
        descriptor = OTPDescriptor(
            account=self.credentials.email,
            secret=self.credentials.twofa,
            issuer=self.app_config.issuer,
            algorithm=self.app_config.algorithm,
            digits=self.app_config.digits,
            period=self.app_config.time_step,
        )
        return qr_image_url(build_otpauth_url(descriptor), self.app_config.qr_service_url)

    def update_frame(self) -> Frame:
        """Tick the session and redraw the code and the countdown."""
        frame = self.session.tick(time.time())

        code_label = self.query_one("#code", Label)
        if frame.code is None:
            code_label.update("--- ---")
        else:
            code_label.update(totp.format_code(frame.code))
        code_label.styles.color = decay_color(frame.fraction)

        progress = self.query_one("#countdown", ProgressBar)
        progress.update(progress=frame.fraction * PROGRESS_STEPS)
        return frame

    @on(DataTable.RowSelected)
    def on_row_selected(self, event: DataTable.RowSelected) -> None:
        """Copy the selected field (Enter key)."""
        if event.row_key is None:
            return

        name = str(event.row_key.value)
        value = dict(self.credentials.fields()).get(name)
        if value:
            self.copy_to_clipboard(value)
            self.notify(f"Copied {name}", severity="information")

    def action_copy_code(self) -> None:
        """Copy the current code."""
        code = self.session.current_code() if self.session else None
        if not code:
            self.notify("No code to copy", severity="warning")
            return

        self.copy_to_clipboard(code)
        self.notify("Copied code", severity="information")
        if self.app_config.close_on_copy:
            self.exit()

    def copy_to_clipboard(self, text: str) -> Optional[subprocess.Popen]:
        """Pipe text into the configured clipboard command.

        The command is started and fed but not waited for.

        Args:
            text: Value to place on the clipboard

        Returns:
            The started process, None if it could not be started
        """
        try:
            # wl-copy and xclip stay alive while they own the selection
            process = subprocess.Popen(
                self.app_config.clipboard_command,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                shell=True,
            )
            process.stdin.write(text.encode())
            process.stdin.close()
        except OSError as e:
            self.notify(f"Clipboard command failed: {e}", severity="error")
            return None
        return process

    def action_select_row(self) -> None:
        """Footer entry for Enter; the copy happens in on_row_selected."""


def run_tui(fragment: Optional[str] = None) -> None:
    """Run the TUI application.

    Args:
        fragment: Credentials link or fragment, read from FRAGOTP_LINK or
            prompted for when omitted
    """
    if fragment is None:
        fragment = os.environ.get("FRAGOTP_LINK") or input("Credentials link: ")

    try:
        config = Config.load()
    except OTPError as e:
        sys.exit(f"Error: {e}")
    app = CredentialsApp(parse_credentials(fragment), config=config)
    app.run()
