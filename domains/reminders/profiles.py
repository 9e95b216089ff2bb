"""Owner profile lookups used to personalize reminders."""

import asyncio
import json
from pathlib import Path
from typing import Optional

from logger import logger
from domains.base import ProfileLookup


class JsonProfileLookup(ProfileLookup):
    """Profiles stored as one JSON document per owner: <directory>/<owner_id>.json."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _read(self, owner_id: str) -> Optional[dict]:
        path = self.directory / f"{owner_id}.json"
        if not path.exists():
            return None
        try:
            profile = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read profile for {owner_id}: {e}")
            return None
        return profile if isinstance(profile, dict) else None

    async def get_profile(self, owner_id: str) -> Optional[dict]:
        return await asyncio.to_thread(self._read, owner_id)


class StaticProfileLookup(ProfileLookup):
    """Every owner shares the same profile. Used when no profile directory is configured."""

    def __init__(self, profile: Optional[dict] = None):
        self.profile = profile or {}

    async def get_profile(self, owner_id: str) -> Optional[dict]:
        return dict(self.profile)
