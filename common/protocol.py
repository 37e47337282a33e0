"""Shared wire models for the object store protocol (serialization formats)."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class EntryProperties(BaseModel):
    """Per-entry properties as the store reports them (hyphenated wire names)."""
    model_config = ConfigDict(populate_by_name=True)

    content_type: Optional[str] = Field(default=None, alias="content-type")
    content_length: Optional[int] = Field(default=None, alias="content-length")
    last_modified: Optional[datetime] = Field(default=None, alias="last-modified")
    public_access: Optional[str] = Field(default=None, alias="public-access")


class ListingEntry(BaseModel):
    """A single listing entry: a container, a child prefix or an object."""
    name: str
    properties: EntryProperties = Field(default_factory=EntryProperties)


class ListingResponse(BaseModel):
    """Response model for every listing query."""
    entries: List[ListingEntry] = Field(default_factory=list)


class LinkResponse(BaseModel):
    """Response model for a time-bounded object link."""
    uri: str
    expires_at: datetime


class CopyObjectRequest(BaseModel):
    """Request model for a server-side copy."""
    source_uri: str


class ErrorResponse(BaseModel):
    """Response model for errors."""
    detail: str
    code: str
