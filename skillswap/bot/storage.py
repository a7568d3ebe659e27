from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from skillswap.config import config

logger = logging.getLogger(__name__)


@dataclass
class ProfileLink:
    discord_user_id: int
    profile_id: str
    linked_at: str


class ProfileLinkStore:
    """Maps Discord users to SkillSwap profile ids, persisted as JSON."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or Path(config.data_dir) / "profile_links.json"
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._links: dict[int, ProfileLink] = {}
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            self._links = {}
            return
        try:
            data = json.loads(self.path.read_text())
            links = [ProfileLink(**item) for item in data]
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"Ignoring unreadable link store {self.path}: {e}")
            links = []
        self._links = {link.discord_user_id: link for link in links}

    def _save(self) -> None:
        payload = [asdict(link) for link in self._links.values()]
        self.path.write_text(json.dumps(payload, indent=2))

    def link(self, discord_user_id: int, profile_id: str) -> ProfileLink:
        """Link a Discord user, replacing any previous link."""
        link = ProfileLink(
            discord_user_id=discord_user_id,
            profile_id=profile_id,
            linked_at=datetime.now(timezone.utc).isoformat(),
        )
        self._links[discord_user_id] = link
        self._save()
        return link

    def unlink(self, discord_user_id: int) -> bool:
        if self._links.pop(discord_user_id, None) is None:
            return False
        self._save()
        return True

    def get_profile_id(self, discord_user_id: int) -> Optional[str]:
        link = self._links.get(discord_user_id)
        return link.profile_id if link else None
