"""Baseline index data structures."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class BaselineEntry(BaseModel):
    name: str  # logical name as passed by the caller
    key: str  # sanitized file-name key
    image_path: str  # relative path from the baseline dir to the PNG
    updated_at: str  # ISO timestamp
    image_hash: str  # SHA-256 hex digest
    width: Optional[int] = None
    height: Optional[int] = None


class BaselineIndex(BaseModel):
    last_updated: str = ""
    baselines: dict[str, BaselineEntry] = Field(default_factory=dict)
    # keyed by sanitized key
