"""Explicit per-request club context passed into every workflow."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .models import Club

DEFAULT_SPORT_TYPE = os.getenv("DEFAULT_SPORT_TYPE", "gaelic_football")
ADMIN_ROLES = {"owner", "admin"}


@dataclass(frozen=True)
class ClubContext:
    club: Club
    user_email: str | None = None
    role: str | None = None

    @property
    def club_id(self) -> str | None:
        return self.club.id

    @property
    def sport_type(self) -> str:
        return self.club.sport_type or DEFAULT_SPORT_TYPE

    @property
    def is_club_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def is_coach(self) -> bool:
        return self.role == "coach"

    @property
    def can_control_matches(self) -> bool:
        return self.is_club_admin or self.is_coach
