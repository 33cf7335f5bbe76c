import asyncio
import logging

from rich.console import Console

from .constants import APP_NAME

logger = logging.getLogger(APP_NAME)


class StatusBar:
    """A single-slot status indicator.

    Every update overwrites the previous text. Terminal states are cleared after
    a delay via `hide_after`; a newer update cancels a pending clear.

    Attributes:
        text (str): The short status label.
        tooltip (str): The longer description.
        visible (bool): Whether a status is currently shown.
        console (Console | None): When set, transitions are rendered to it.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.text = ""
        self.tooltip = ""
        self.visible = False
        self.console = console
        self._clear_handle: asyncio.TimerHandle | None = None

    def update(self, text: str, tooltip: str = "") -> None:
        """Shows a new status, replacing the current one."""
        self._cancel_clear()
        self.text = text
        self.tooltip = tooltip
        self.visible = True
        logger.debug(f"STATUS {text}" + (f" ({tooltip})" if tooltip else ""))
        if self.console is not None:
            line = f"[bold cyan]{text}[/bold cyan]"
            if tooltip:
                line += f" [dim]{tooltip}[/dim]"
            self.console.print(line)

    def hide(self) -> None:
        """Clears the status slot."""
        self._cancel_clear()
        self.visible = False

    def hide_after(self, delay: float) -> None:
        """Schedules `hide` on the running event loop.

        Args:
            delay (float): Seconds until the status is cleared. Hides
                immediately when no event loop is running.
        """
        self._cancel_clear()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.visible = False
            return
        self._clear_handle = loop.call_later(delay, self._expire)

    def dispose(self) -> None:
        """Drops any pending clear and hides the status."""
        self.hide()

    def _expire(self) -> None:
        self._clear_handle = None
        self.visible = False

    def _cancel_clear(self) -> None:
        if self._clear_handle is not None:
            self._clear_handle.cancel()
            self._clear_handle = None
