"""Base model classes for the Interview Practice Engine."""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel as PydanticBaseModel, Field


class BaseModel(PydanticBaseModel):
    """Base model with common functionality."""

    class Config:
        """Pydantic configuration."""
        use_enum_values = False
        validate_assignment = True


class FrozenModel(PydanticBaseModel):
    """Base model for values that never change after construction."""

    class Config:
        """Pydantic configuration."""
        use_enum_values = False
        frozen = True


class IdentifiableModel(BaseModel):
    """Base model with ID field."""

    id: str = Field(default_factory=lambda: str(uuid4()), description="Unique identifier")


class TimestampedModel(BaseModel):
    """Base model with timestamp fields."""

    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(default=None, description="Last update timestamp")

    def update_timestamp(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = datetime.now()
