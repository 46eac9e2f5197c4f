"""Session renewal for Studio API calls.

This module provides:
- GateState: Whether a login prompt is shown or was cancelled
- SessionGate: Runs API calls and renews the session when Studio asks for it

Every remote call goes through SessionGate.call. When Studio answers
with an auth-required code the gate shows one login prompt, stores the
new token and replays the call. Calls failing while the prompt is open
wait for it to close and replay without prompting again. Once the user
cancels the prompt, auth failures raise until the next successful login.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum, auto
from typing import TYPE_CHECKING

from studiohelper.client.credentials import Credentials
from studiohelper.client.results import (
    ApiError,
    ApiResult,
    AuthRequiredError,
    Ok,
)

if TYPE_CHECKING:
    from studiohelper.client.api import StudioApiClient
    from studiohelper.client.credentials import CredentialStore
    from studiohelper.client.prompt import LoginPrompt

logger = logging.getLogger(__name__)

# Seconds between checks while another call holds the prompt
PROMPT_POLL_INTERVAL = 0.1

ApiCall = Callable[[], Awaitable[ApiResult]]


class GateState(Enum):
    """State of the session gate."""

    IDLE = auto()
    PROMPT_SHOWN = auto()
    CANCELLED = auto()


class SessionGate:
    """Interposes session renewal between callers and the API client."""

    def __init__(
        self,
        api: StudioApiClient,
        credentials: CredentialStore,
        prompt: LoginPrompt | None,
        login_prompt_enabled: bool = True,
        poll_interval: float = PROMPT_POLL_INTERVAL,
    ) -> None:
        """Initialize the gate.

        Args:
            api: Client whose token is renewed.
            credentials: Store the renewed token is saved to.
            prompt: Interactive prompt (None disables prompting).
            login_prompt_enabled: Prompt on auth failures instead of raising.
            poll_interval: Seconds between checks while waiting for a prompt.
        """
        self._api = api
        self._credentials = credentials
        self._prompt = prompt if login_prompt_enabled else None
        self._poll_interval = poll_interval
        self._state = GateState.IDLE
        self._prompt_count = 0

    @property
    def state(self) -> GateState:
        """Get the current gate state."""
        return self._state

    @property
    def prompt_count(self) -> int:
        """Get how many times the login prompt was shown."""
        return self._prompt_count

    def resume(self) -> None:
        """Allow the login prompt again after the user cancelled it."""
        if self._state is GateState.CANCELLED:
            self._state = GateState.IDLE

    async def call(self, request: ApiCall) -> ApiResult:
        """Run an API call, renewing the session if Studio asks for it.

        Args:
            request: Zero-argument coroutine function issuing the call.
                It is invoked again for every replay.

        Returns:
            The first result that is not an auth-required error.

        Raises:
            AuthRequiredError: If prompting is disabled or the user cancelled
                the login.
        """
        while True:
            sent_with = self._api.auth_token
            result = await request()
            if not (isinstance(result, ApiError) and result.needs_auth):
                return result

            if self._state is GateState.IDLE:
                logger.warning(result.message)

            prompt = self._prompt
            if prompt is None:
                raise AuthRequiredError(result.message, result)
            if self._state is GateState.CANCELLED:
                raise AuthRequiredError("Login cancelled", result)

            # Renewed by another call while this one was in flight
            if self._api.auth_token != sent_with:
                continue

            await self._renew_session(prompt, result)

    async def _renew_session(self, prompt: LoginPrompt, failure: ApiError) -> None:
        """Show the login prompt, or wait for the one already shown."""
        if self._state is GateState.PROMPT_SHOWN:
            while self._state is GateState.PROMPT_SHOWN:
                await asyncio.sleep(self._poll_interval)
        else:
            self._state = GateState.PROMPT_SHOWN
            logged_in = False
            try:
                logged_in = await self._login_until_success(prompt)
            finally:
                self._state = GateState.IDLE if logged_in else GateState.CANCELLED

        if self._state is GateState.CANCELLED:
            raise AuthRequiredError("Login cancelled", failure)

    async def _login_until_success(self, prompt: LoginPrompt) -> bool:
        """Prompt until a login succeeds; False if the user cancelled."""
        stored = self._credentials.get()
        default_username = stored.username if stored else ""

        while True:
            self._prompt_count += 1
            answers = await prompt.ask(default_username)
            if answers is None:
                return False

            try:
                result = await self._api.login(answers.username, answers.password, answers.token)
            except ValueError as e:
                logger.error(str(e))
                continue

            match result:
                case Ok(result={"authToken": str(token)}):
                    self._api.set_auth_token(token)
                    self._credentials.put(Credentials(auth_token=token, username=answers.username))
                    logger.info(f"Logged in as {answers.username}")
                    return True
                case Ok():
                    logger.error("Login response did not contain an auth token")
                case _:
                    logger.error(result.message)
            default_username = answers.username
