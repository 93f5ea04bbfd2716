"""
Auth Service — a fixed local identity.

There is no sign-in protocol. login() and handle_provider_response() both
resolve to the configured user; anything a provider sends back is ignored.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

from src.data.models import User

logger = logging.getLogger(__name__)

AuthCallback = Callable[[Optional[User]], None]


class AuthService:

    def __init__(self, user: User, logged_in: bool = True) -> None:
        self._user = user
        self._current: Optional[User] = user if logged_in else None
        self._subscribers: List[AuthCallback] = []

    @property
    def current_user(self) -> Optional[User]:
        return self._current

    @property
    def is_logged_in(self) -> bool:
        return self._current is not None

    def login(self) -> User:
        logger.info("Logging in as %s", self._user.email)
        self._set(self._user)
        return self._user

    def handle_provider_response(self, response: Any) -> User:
        logger.debug("Ignoring provider response: %r", response)
        return self.login()

    def logout(self) -> None:
        logger.info("Logging out")
        self._set(None)

    def subscribe(self, callback: AuthCallback) -> Callable[[], None]:
        """Call ``callback`` now and on every change. Returns an unsubscribe."""
        self._subscribers.append(callback)
        callback(self._current)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _set(self, user: Optional[User]) -> None:
        self._current = user
        for cb in list(self._subscribers):
            cb(user)
