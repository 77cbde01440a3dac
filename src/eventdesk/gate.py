"""Calendar permission lifecycle checked before any read or write."""

import logging

from eventdesk.api_clients.base import BaseCalendarProvider
from eventdesk.exceptions import AccessDeniedError, AccessSystemError
from eventdesk.types import AuthorizationState

logger = logging.getLogger(__name__)


class AuthorizationGate:
    """Tracks calendar permission through the provider.

    The gate holds no state of its own; every call asks the provider. It
    never fetches events, so callers start the first fetch once access is
    granted.
    """

    def __init__(self, provider: BaseCalendarProvider):
        self.provider = provider

    def check_status(self) -> AuthorizationState:
        """Get the current permission without prompting.

        Raises:
            AccessSystemError: If the provider's permission API failed.
        """
        try:
            return self.provider.authorization_status()
        except Exception as e:
            logger.error(f"Failed to read calendar authorization status: {e}")
            raise AccessSystemError(f"Could not read calendar permission: {e}") from e

    async def request_access(self) -> AuthorizationState:
        """Prompt for access if the user has not decided yet.

        Only UNDETERMINED reaches the provider's prompt. GRANTED returns at
        once; DENIED and RESTRICTED are returned unchanged because the
        provider will not show its dialog again, and the user has to be sent
        to the system settings instead.

        Raises:
            AccessSystemError: If the provider failed while prompting.
        """
        state = self.check_status()
        if state != AuthorizationState.UNDETERMINED:
            logger.debug("Not prompting for calendar access, state is %s", state.value)
            return state

        try:
            result = await self.provider.request_access()
        except Exception as e:
            logger.error(f"Calendar access prompt failed: {e}")
            raise AccessSystemError(f"Calendar access request failed: {e}") from e

        if result == AuthorizationState.GRANTED:
            logger.info("Calendar access granted")
            return AuthorizationState.GRANTED
        logger.info("Calendar access denied by user")
        return AuthorizationState.DENIED

    async def ensure_access(self) -> None:
        """Make sure access is granted, prompting if needed.

        Raises:
            AccessDeniedError: If access ends up anything but GRANTED.
            AccessSystemError: If the provider's permission API failed.
        """
        state = await self.request_access()
        if state != AuthorizationState.GRANTED:
            raise AccessDeniedError(state)
