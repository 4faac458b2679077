"""Payloads for the department stage records.

Each stage has its own record type tagged by a ``stage`` literal, so a payload that reaches
the stage service is already known to match the table it will be written to.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class MeasurementRow(BaseModel):
    label: str
    values: list[str | float | None] = Field(default_factory=list)
    free_text: str | None = None


class InspectionRow(BaseModel):
    label: str
    value: str | float | None = None
    values: list[str | float | None] = Field(default_factory=list)
    ok: bool | None = None
    remarks: str | None = None


class _StageBase(BaseModel):
    trial_id: str = Field(min_length=1, max_length=30)
    remarks: str | None = None


class MachineShopPayload(_StageBase):
    stage: Literal["machine_shop"] = "machine_shop"
    inspection_date: date | None = None
    cavities: list[str] = Field(default_factory=list)
    rows: list[MeasurementRow] = Field(default_factory=list)
    dimensional_report_remarks: str | None = None


class MaterialCorrectionPayload(_StageBase):
    stage: Literal["material_correction"] = "material_correction"
    chemical_composition: dict[str, Any] = Field(default_factory=dict)
    process_parameters: dict[str, Any] = Field(default_factory=dict)


class MetallurgicalInspectionPayload(_StageBase):
    stage: Literal["metallurgical_inspection"] = "metallurgical_inspection"
    inspection_date: date | None = None
    micro_rows: list[InspectionRow] = Field(default_factory=list)
    mech_rows: list[InspectionRow] = Field(default_factory=list)
    impact_rows: list[InspectionRow] = Field(default_factory=list)
    hard_rows: list[InspectionRow] = Field(default_factory=list)


class VisualInspectionPayload(_StageBase):
    stage: Literal["visual_inspection"] = "visual_inspection"
    inspection_date: date | None = None
    cols: list[str] = Field(default_factory=list)
    rows: list[MeasurementRow] = Field(default_factory=list)
    ok: bool | None = None


class SandPropertiesPayload(_StageBase):
    stage: Literal["sand_properties"] = "sand_properties"
    inspection_date: date | None = None
    t_clay: float | None = None
    a_clay: float | None = None
    vcm: float | None = None
    loi: float | None = None
    afs: float | None = None
    gcs: float | None = None
    moi: float | None = None
    compactability: float | None = None
    permeability: float | None = None


class MechanicalPropertiesPayload(_StageBase):
    stage: Literal["mechanical_properties"] = "mechanical_properties"
    tensile_strength: str | None = None
    yield_strength: str | None = None
    elongation: str | None = None
    impact_strength_cold: str | None = None
    impact_strength_room: str | None = None
    hardness_surface: str | None = None
    hardness_core: str | None = None
    x_ray_inspection: str | None = None
    mpi: str | None = None


StagePayload = Annotated[
    Union[
        MachineShopPayload,
        MaterialCorrectionPayload,
        MetallurgicalInspectionPayload,
        VisualInspectionPayload,
        SandPropertiesPayload,
        MechanicalPropertiesPayload,
    ],
    Field(discriminator="stage"),
]


class _StageOut(BaseModel):
    id: int
    trial_id: str
    remarks: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class MachineShopOut(_StageOut):
    inspection_date: date | None = None
    cavities: list[str] = []
    rows: list[dict[str, Any]] = []
    dimensional_report_remarks: str | None = None


class MaterialCorrectionOut(_StageOut):
    chemical_composition: dict[str, Any] = {}
    process_parameters: dict[str, Any] = {}


class MetallurgicalInspectionOut(_StageOut):
    inspection_date: date | None = None
    micro_rows: list[dict[str, Any]] = []
    mech_rows: list[dict[str, Any]] = []
    impact_rows: list[dict[str, Any]] = []
    hard_rows: list[dict[str, Any]] = []


class VisualInspectionOut(_StageOut):
    inspection_date: date | None = None
    cols: list[str] = []
    rows: list[dict[str, Any]] = []
    ok: bool | None = None


class SandPropertiesOut(_StageOut):
    inspection_date: date | None = None
    t_clay: float | None = None
    a_clay: float | None = None
    vcm: float | None = None
    loi: float | None = None
    afs: float | None = None
    gcs: float | None = None
    moi: float | None = None
    compactability: float | None = None
    permeability: float | None = None


class MechanicalPropertiesOut(_StageOut):
    tensile_strength: str | None = None
    yield_strength: str | None = None
    elongation: str | None = None
    impact_strength_cold: str | None = None
    impact_strength_room: str | None = None
    hardness_surface: str | None = None
    hardness_core: str | None = None
    x_ray_inspection: str | None = None
    mpi: str | None = None
