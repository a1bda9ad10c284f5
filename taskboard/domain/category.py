"""Task category lookup model."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Category(BaseModel):
    """Category/label a task can be filed under."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Unique category ID")
    name: str = Field(..., description="Display name")
    sort_order: int = Field(default=0, description="Ordering hint for pickers")
    is_active: bool = Field(default=True, description="Inactive categories are hidden from pickers")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: object) -> object:
        """Accept integer ids from SQLite rows."""
        return str(v) if isinstance(v, int) else v
