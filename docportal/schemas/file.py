"""
schemas/file.py
---------------
Pydantic models for uploads and file listings.
"""

import base64
import binascii
from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from docportal.services.object_store import KEEP_PLACEHOLDER

MONTH_PATTERN = r"^(0[1-9]|1[0-2])$"
YEAR_PATTERN = r"^\d{4}$"


def check_display_name(v: str) -> str:
    """Display names become the last segment of a storage key."""
    v = v.strip()
    if not v:
        raise ValueError("file name cannot be empty")
    if "/" in v or "\\" in v or v in (".", ".."):
        raise ValueError("file name cannot contain path separators")
    if v == KEEP_PLACEHOLDER:
        raise ValueError(f"'{KEEP_PLACEHOLDER}' is a reserved name")
    return v


class FileUploadBase64(BaseModel):
    file_name: str = Field(
        ...,
        max_length=255,
        validation_alias=AliasChoices("file_name", "fileName", "nomeArquivo"),
    )
    content: bytes = Field(
        ...,
        validation_alias=AliasChoices("content", "conteudo"),
        description="Base64-encoded file bytes",
    )
    content_type: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("content_type", "contentType"),
    )

    @field_validator("file_name")
    @classmethod
    def check_file_name(cls, v: str) -> str:
        return check_display_name(v)

    @field_validator("content", mode="before")
    @classmethod
    def decode_content(cls, v):
        try:
            if isinstance(v, str):
                v = v.encode("ascii")
            return base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError, TypeError) as exc:
            raise ValueError("content is not valid base64") from exc


class FileRead(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    upload_date: Optional[datetime] = None
    url: str
