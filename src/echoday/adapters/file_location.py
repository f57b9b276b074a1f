"""File-based location provider adapter."""

import asyncio
import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class FileLocationProvider:
    """
    Reads the latest known position from a JSON file ({"lat": .., "lng": ..}).

    Implements LocationProvider protocol. A companion app or script keeps the
    file current.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def _read(self) -> tuple[float, float] | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text())
            return float(data["lat"]), float(data["lng"])
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Unreadable location file {self.path}: {e}")
            return None

    async def current_position(self) -> tuple[float, float] | None:
        return await asyncio.to_thread(self._read)
