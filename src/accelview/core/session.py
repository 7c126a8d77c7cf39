"""Session context supplied by the authentication layer."""

from typing import Optional

import pydantic

from accelview.core import config

logger = config.get_logger()


class SessionContext(pydantic.BaseModel):
    """Identity of the signed-in user, used only for attribution.

    Credentials are never part of the context.
    """

    model_config = pydantic.ConfigDict(frozen=True)

    user_id: str
    display_name: Optional[str] = None
    email: Optional[str] = None


class SessionManager:
    """Owns the lifecycle of the current session context.

    The authentication collaborator calls start() after a successful sign-in and
    end() on sign-out. Components that need attribution read current.
    """

    def __init__(self) -> None:
        """Initialize without a signed-in user."""
        self._current: Optional[SessionContext] = None

    @property
    def current(self) -> Optional[SessionContext]:
        """The active session context, if a user is signed in."""
        return self._current

    def start(self, context: SessionContext) -> SessionContext:
        """Install the context of a newly signed-in user."""
        if self._current is not None:
            logger.debug("Replacing session of %s.", self._current.user_id)
        self._current = context
        logger.debug("Session started for %s.", context.user_id)
        return context

    def end(self) -> None:
        """Tear down the current session."""
        if self._current is not None:
            logger.debug("Session ended for %s.", self._current.user_id)
        self._current = None
