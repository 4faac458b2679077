"""Schemas for the master pattern list."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MasterCardFields(BaseModel):
    material_grade: str | None = Field(default=None, max_length=100)
    chemical_composition: dict[str, Any] | None = None
    micro_structure: str | None = None
    tensile: str | None = None
    yield_strength: str | None = Field(default=None, alias="yield")
    elongation: str | None = None
    impact_cold: str | None = None
    impact_room: str | None = None
    hardness_surface: str | None = None
    hardness_core: str | None = None
    xray: str | None = None
    mpi: str | None = None
    number_of_cavity: str | None = None
    cavity_identification: str | None = None
    pattern_material: str | None = Field(default=None, max_length=100)
    core_weight: str | None = None
    core_mask_thickness: str | None = None
    estimated_casting_weight: str | None = None
    estimated_bunch_weight: str | None = None
    pattern_plate_thickness_sp: str | None = None
    pattern_plate_weight_sp: str | None = None
    core_mask_weight_sp: str | None = None
    crush_pin_height_sp: str | None = None
    pattern_plate_thickness_pp: str | None = None
    pattern_plate_weight_pp: str | None = None
    crush_pin_height_pp: str | None = None
    yield_label: str | None = None
    remarks: str | None = None

    model_config = ConfigDict(populate_by_name=True)


class MasterCardCreate(MasterCardFields):
    pattern_code: str = Field(min_length=1, max_length=150)
    part_name: str = Field(min_length=1, max_length=200)


class MasterCardUpdate(MasterCardFields):
    pattern_code: str | None = Field(default=None, min_length=1, max_length=150)
    part_name: str | None = Field(default=None, min_length=1, max_length=200)

    @field_validator("pattern_code", "part_name")
    @classmethod
    def _not_null(cls, value):
        # may be omitted, but never cleared
        if value is None:
            raise ValueError("cannot be null")
        return value


class MasterCardOut(MasterCardFields):
    id: int
    pattern_code: str
    part_name: str
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class MasterCardToggle(BaseModel):
    id: int
    is_active: bool


class BulkDelete(BaseModel):
    ids: list[int] = Field(min_length=1)
