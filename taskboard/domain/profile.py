"""Profile and viewer models."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProfileRole(StrEnum):
    """Role of a profile on the board."""

    USER = "user"
    ADMIN = "admin"


class Profile(BaseModel):
    """Profile data transfer object (read-only to the board core)."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Unique profile ID")
    email: str | None = Field(default=None, description="Email address")
    display_name: str | None = Field(default=None, description="Full name shown in views")
    role: ProfileRole = Field(default=ProfileRole.USER, description="Board role")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: object) -> object:
        """Accept integer ids from SQLite rows."""
        return str(v) if isinstance(v, int) else v

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v: object) -> object:
        """Treat role names case-insensitively and unknown/empty roles as user."""
        if v is None:
            return ProfileRole.USER
        if isinstance(v, str):
            lowered = v.strip().lower()
            return lowered if lowered in {r.value for r in ProfileRole} else ProfileRole.USER
        return v

    @property
    def label(self) -> str:
        """Human label: display name, then email, then id."""
        return self.display_name or self.email or self.id


class Viewer(BaseModel):
    """The signed-in identity the board is rendered for."""

    id: str
    role: ProfileRole = ProfileRole.USER

    @property
    def is_admin(self) -> bool:
        """Whether the viewer holds administrative privilege."""
        return self.role == ProfileRole.ADMIN

    @classmethod
    def from_profile(cls, profile: Profile) -> "Viewer":
        """Build a viewer from a resolved profile."""
        return cls(id=profile.id, role=profile.role)
