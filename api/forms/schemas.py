"""
Pydantic schemas for the form registry and submission ingestion.

Field names follow what the WordPress connector plugin sends (`form_id`,
`form_plugin`, ...); the descriptive names are accepted as aliases.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class SyncFormItem(BaseModel):
    """
    One form definition reported by a client's site.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
        populate_by_name=True,
    )

    external_form_id: str = Field(
        ...,
        min_length=1,
        max_length=255,
        validation_alias=AliasChoices("form_id", "external_form_id"),
    )
    form_name: str = Field(..., min_length=1, max_length=255)
    plugin: str = Field(
        ...,
        min_length=1,
        max_length=100,
        validation_alias=AliasChoices("form_plugin", "plugin"),
    )
    # Opaque description of the form's fields.
    form_schema: Any = Field(
        default=None,
        validation_alias=AliasChoices("fields", "form_schema", "schema"),
    )


class IngestSubmissionRequest(BaseModel):
    model_config = ConfigDict(
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
        populate_by_name=True,
    )

    external_form_id: str = Field(
        ...,
        min_length=1,
        max_length=255,
        validation_alias=AliasChoices("form_id", "external_form_id"),
    )
    plugin: str = Field(
        ...,
        min_length=1,
        max_length=100,
        validation_alias=AliasChoices("form_plugin", "plugin"),
    )
    submission_data: dict[str, Any] = Field(
        ...,
        validation_alias=AliasChoices("submission_data", "payload"),
    )
    submitted_at: datetime | None = None
    external_id: str | None = Field(default=None, min_length=1, max_length=255)
    # Sent by the plugin for convenience; the registry name comes from /forms/sync.
    form_name: str | None = None
