"""Notification delivery interface."""

from typing import Protocol

from echoday.core.models import ActiveReminder


class Notifier(Protocol):
    """Interface for delivering a fired reminder to the user."""

    async def notify(self, reminder: ActiveReminder) -> None:
        """Deliver a reminder. May raise; the dispatcher contains failures."""
        ...
