"""
Pydantic schemas for API key management.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class GenerateApiKeyRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    key_name: str = Field(..., min_length=1, max_length=255)
