"""
Shared plumbing for screen controllers.

A controller holds the latest snapshot of every collection its screen
shows, turns user actions into service calls and reports failures through
an ``alert(title, message)`` callable. It knows nothing about Qt.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

from src.data.store import Subscription
from src.services.app_session import AppSession

logger = logging.getLogger(__name__)

AlertFn = Callable[[str, str], None]


class ScreenController:

    def __init__(self, session: AppSession,
                 on_change: Optional[Callable[[], None]] = None,
                 alert: Optional[AlertFn] = None) -> None:
        self.session = session
        self.on_change = on_change
        self.alert = alert or (lambda title, message: logger.warning("%s: %s", title, message))
        self._subscriptions: List[Subscription] = []

    @property
    def user_id(self) -> str:
        return self.session.user_id

    def start(self) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        for sub in self._subscriptions:
            sub.unsubscribe()
        self._subscriptions.clear()

    # ── Helpers ─────────────────────────────────────────────────────────────

    def _watch(self, subscribe: Callable[[str, Callable[[list], None]], Subscription],
               attr: str) -> None:
        """Keep ``self.<attr>`` in sync with a collection."""
        def on_items(items: list) -> None:
            setattr(self, attr, items)
            self._changed()

        sub = subscribe(self.user_id, on_items)
        self._subscriptions.append(self.session.track(sub))

    def _changed(self) -> None:
        if self.on_change:
            self.on_change()

    def _run(self, title: str, action: Callable[..., Any], *args, **kwargs) -> bool:
        """Call ``action``; on failure log, alert and return False."""
        try:
            action(*args, **kwargs)
        except Exception as exc:
            logger.exception("%s failed", title)
            self.alert(title, str(exc))
            return False
        return True

    def _require(self, value: str, title: str, message: str) -> bool:
        if value and value.strip():
            return True
        self.alert(title, message)
        return False
