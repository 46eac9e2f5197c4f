"""Interactive login prompt.

This module provides:
- LoginAnswers: What the user typed
- LoginPrompt: Protocol the session gate asks for credentials through
- ClickLoginPrompt: Terminal prompt built on click
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Protocol

import click


@dataclass(frozen=True)
class LoginAnswers:
    """Credentials entered at the login prompt."""

    username: str
    password: str
    token: str = ""


class LoginPrompt(Protocol):
    """Asks the user for login credentials."""

    async def ask(self, default_username: str = "") -> LoginAnswers | None:
        """Return the entered credentials, or None if the user gave up."""
        ...


class ClickLoginPrompt:
    """Prompts for username, password and one-time token on the terminal.

    click.prompt blocks, so it runs in a worker thread and the event loop
    keeps serving other transfers while the prompt is open.
    """

    def __init__(self, ask_token: bool = True) -> None:
        """Initialize the prompt.

        Args:
            ask_token: Also ask for a Yubikey token.
        """
        self._ask_token = ask_token

    def _ask_blocking(self, default_username: str) -> LoginAnswers | None:
        try:
            username = click.prompt("Username", default=default_username or None)
            password = click.prompt("Password", hide_input=True)
            token = ""
            if self._ask_token:
                token = click.prompt("Yubikey token", default="", show_default=False)
        except click.Abort:
            return None
        return LoginAnswers(username=username, password=password, token=token)

    async def ask(self, default_username: str = "") -> LoginAnswers | None:
        """Show the prompt without blocking the event loop."""
        return await asyncio.to_thread(self._ask_blocking, default_username)
