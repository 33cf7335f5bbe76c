"""Tests for the single-slot status sink."""

import asyncio

import pytest
from rich.console import Console

from git_autopull.status import StatusBar


def test_update_overwrites_slot() -> None:
    """Each update replaces both label and tooltip."""
    bar = StatusBar()
    bar.update("Git Pull in Progress", "Click to cancel")
    bar.update("All 2 repositories up to date")

    assert bar.text == "All 2 repositories up to date"
    assert bar.tooltip == ""
    assert bar.visible is True


def test_renders_to_console() -> None:
    """An attached console receives every transition."""
    console = Console(record=True, width=120)
    bar = StatusBar(console)

    bar.update("Updated 1 of 2 repositories", "Git pull completed")

    output = console.export_text()
    assert "Updated 1 of 2 repositories" in output
    assert "Git pull completed" in output


@pytest.mark.asyncio
async def test_hide_after_clears_status() -> None:
    """A terminal status disappears after the delay."""
    bar = StatusBar()
    bar.update("Git Pull Cancelled")
    bar.hide_after(0.01)

    assert bar.visible is True
    await asyncio.sleep(0.05)
    assert bar.visible is False


@pytest.mark.asyncio
async def test_new_update_cancels_pending_clear() -> None:
    """A status shown after scheduling a clear is not hidden by the old timer."""
    bar = StatusBar()
    bar.update("Git Pull Cancelled")
    bar.hide_after(0.01)
    bar.update("Git Pull in Progress", "Click to cancel")

    await asyncio.sleep(0.05)
    assert bar.visible is True


def test_hide_after_without_loop_hides_immediately() -> None:
    """Outside an event loop there is nothing to schedule on."""
    bar = StatusBar()
    bar.update("Git Pull Error")

    bar.hide_after(5)

    assert bar.visible is False
