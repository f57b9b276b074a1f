"""Device location interface."""

from typing import Protocol


class LocationProvider(Protocol):
    """Interface for reading the device's current position."""

    async def current_position(self) -> tuple[float, float] | None:
        """Current (lat, lng), or None when unavailable."""
        ...
