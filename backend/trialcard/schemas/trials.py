"""Schemas for trial cards and their status transitions."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class TrialCreate(BaseModel):
    trial_id: str | None = Field(default=None, max_length=30)
    part_name: str = Field(min_length=1, max_length=200)
    pattern_code: str = Field(min_length=1, max_length=150)
    material_grade: str | None = None
    initiated_by: str | None = None
    date_of_sampling: date | None = None
    no_of_moulds: int | None = Field(default=None, ge=0)
    plan_moulds: int | None = Field(default=None, ge=0)
    actual_moulds: int | None = Field(default=None, ge=0)
    reason_for_sampling: str | None = None
    disa: str | None = None


class TrialStatusUpdate(BaseModel):
    # presence is checked by the lifecycle service so it can report a domain error
    trial_id: str | None = None
    status: str | None = None


class TrialRef(BaseModel):
    trial_id: str = Field(min_length=1, max_length=30)


class TrialOut(BaseModel):
    trial_id: str
    part_name: str
    pattern_code: str
    material_grade: str | None = None
    initiated_by: str | None = None
    date_of_sampling: date | None = None
    no_of_moulds: int | None = None
    plan_moulds: int | None = None
    actual_moulds: int | None = None
    reason_for_sampling: str | None = None
    disa: str | None = None
    status: str
    created_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class DeletedTrialOut(TrialOut):
    deleted_at: datetime | None = None
    deleted_by: str | None = None


class NextTrialId(BaseModel):
    trialId: str
