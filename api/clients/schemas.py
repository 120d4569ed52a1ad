"""
Pydantic schemas for client (WordPress site) endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CreateClientRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    wordpress_url: str = Field(..., min_length=1, max_length=500)
    # Optional WordPress application password, only used by form discovery.
    wordpress_username: str | None = Field(default=None, max_length=255)
    wordpress_app_password: str | None = Field(default=None, max_length=500)
