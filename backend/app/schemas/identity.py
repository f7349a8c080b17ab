from __future__ import annotations

from pydantic import BaseModel, Field


class Identity(BaseModel):
    """An identity asserted by the external identity provider."""

    external_id: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=1, max_length=255)
    first_name: str | None = None
    last_name: str | None = None
    avatar_url: str | None = None

    model_config = {"frozen": True}

    @property
    def display_name(self) -> str:
        """Best human name for the identity, falling back to the email local part."""
        full = " ".join(part for part in (self.first_name, self.last_name) if part)
        return full or self.email.split("@")[0]
