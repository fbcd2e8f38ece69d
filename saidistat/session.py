"""Authentication state shared by every page of the app.

`reduce_session` is a pure reducer over auth events. `SessionStore` holds
the current state and only notifies subscribers when something they render
from changes: the signed-in identity or the loading flag. A token refresh
for the same user swaps the session silently.
"""

import enum
import logging
import time
from dataclasses import dataclass, replace
from typing import Optional

logger = logging.getLogger(__name__)


class AuthEvent(enum.Enum):
    INITIAL_SESSION = 'INITIAL_SESSION'
    SIGNED_IN = 'SIGNED_IN'
    SIGNED_OUT = 'SIGNED_OUT'
    TOKEN_REFRESHED = 'TOKEN_REFRESHED'
    USER_UPDATED = 'USER_UPDATED'


@dataclass(frozen=True)
class AuthUser:
    id: str
    username: str
    guest: bool = False


@dataclass(frozen=True)
class AuthSession:
    user: AuthUser
    access_token: str
    issued_at: float

    def age(self, now=None):
        return (time.time() if now is None else now) - self.issued_at


@dataclass(frozen=True)
class SessionState:
    user: Optional[AuthUser] = None
    session: Optional[AuthSession] = None
    loading: bool = True

    @property
    def user_id(self):
        return self.user.id if self.user else None

    @property
    def authenticated(self):
        return self.user is not None and not self.user.guest


def reduce_session(state, event, session=None):
    """Returns the next state; `state` itself when nothing observable changed."""
    if event is AuthEvent.SIGNED_OUT:
        session = None
    user = session.user if session else None
    same_identity = (user.id if user else None) == state.user_id
    if same_identity and not state.loading:
        if event is AuthEvent.USER_UPDATED and user != state.user:
            return SessionState(user=user, session=session, loading=False)
        if session is not None and session != state.session:
            return replace(state, session=session)
        return state
    return SessionState(user=user, session=session, loading=False)


class SessionStore:
    """Mutable holder for SessionState, injected wherever pages need the user."""

    def __init__(self, state=None):
        self._state = state or SessionState()
        self._subscribers = []

    @property
    def state(self):
        return self._state

    def subscribe(self, callback):
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    def dispatch(self, event, session=None):
        """Applies an auth event; returns True when subscribers were notified."""
        previous = self._state
        self._state = reduce_session(previous, event, session)
        changed = (
            self._state.user != previous.user
            or self._state.loading != previous.loading
        )
        if changed:
            logger.info("Auth state changed: %s", event.value)
            for callback in list(self._subscribers):
                callback(self._state)
        return changed

    def needs_refresh(self, max_age_seconds, now=None):
        session = self._state.session
        return session is not None and session.age(now) >= max_age_seconds
