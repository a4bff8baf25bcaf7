"""Pydantic schemas for the lookup endpoint."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class LookupRequest(BaseModel):
    """Validated lookup request."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    type: str = Field(
        ...,
        min_length=1,
        description="RDAP object category: domain, ip, asn or entity.",
        examples=["domain"],
    )
    object: str = Field(
        ...,
        min_length=1,
        description="Object identifier, e.g. a domain name, IP address or handle.",
        examples=["example.com"],
    )


class MessageResponse(BaseModel):
    """Body of every non-200 response."""

    message: str = Field(..., description="Human-readable outcome of the request.")
