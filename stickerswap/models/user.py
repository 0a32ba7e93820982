from dataclasses import dataclass


@dataclass(frozen=True)
class UserProfile:
    """Public profile fields of a marketplace user."""

    id: str
    nickname: str
    avatar_url: str | None = None
    city: str | None = None
    state: str | None = None
    is_active: bool = True
