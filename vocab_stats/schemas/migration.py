"""Pydantic models for migration triggers and progress documents."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class MigrationStartResponse(BaseModel):
    """Acknowledgement returned when a background job is triggered."""

    started: bool
    error: Optional[str] = None


class RebuildResponse(BaseModel):
    """Outcome of a synchronous aggregate rebuild."""

    success: bool
    processed: int = 0
    error: Optional[str] = None


class CancelResponse(BaseModel):
    cancelled: bool


class MigrationStepRead(BaseModel):
    """Progress entry of one orchestrated step."""

    name: str
    status: str
    processed: int = 0
    total: int = 0


class MigrationProgressRead(BaseModel):
    """Progress document as seen by pollers; unset fields are omitted."""

    status: str = Field(description="not_started, running, completed, error or cancelled")
    key: Optional[str] = None
    error: Optional[str] = None
    cancel_requested: Optional[bool] = None
    started_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    # legacy status migration
    total: Optional[int] = None
    migrated_count: Optional[int] = None
    skipped_count: Optional[int] = None
    current_batch: Optional[int] = None

    # aggregate rebuilds
    processed: Optional[int] = None

    # multi-step migration
    current_step: Optional[int] = None
    steps: Optional[List[MigrationStepRead]] = None
