# src/rarity_checker/schemas/common.py
"""Shared response envelopes."""

from pydantic import BaseModel, Field


class ErrorBody(BaseModel):
    code: str = Field(..., description="Stable machine-readable error code")
    message: str = Field(..., description="Human-readable explanation")


class ErrorResponse(BaseModel):
    """Body returned for every failed request."""

    error: ErrorBody


class MessageResponse(BaseModel):
    message: str
