"""
Pydantic schemas for the bulk-sync pull.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class BulkSyncEntry(BaseModel):
    """
    One entry returned by the connector plugin's `/wp-json/fdc/v1/bulk-sync`.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
        populate_by_name=True,
    )

    form_id: str = Field(..., min_length=1, max_length=255)
    form_name: str | None = Field(default=None, max_length=255)
    form_plugin: str = Field(
        ...,
        min_length=1,
        max_length=100,
        validation_alias=AliasChoices("form_plugin", "plugin"),
    )
    external_id: str = Field(..., min_length=1, max_length=255)
    submission_data: dict[str, Any] | None = None
    submitted_at: datetime | None = None
