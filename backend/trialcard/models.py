from sqlalchemy import (
    Column,
    String,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    JSON,
    Integer,
    Text,
    event,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from .database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Department(Base):
    __tablename__ = "departments"
    department_id = Column(Integer, primary_key=True, autoincrement=False)
    department_name = Column(String(100), unique=True, nullable=False)

    users = relationship("User", back_populates="department")


class User(Base):
    __tablename__ = "users"
    user_id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, nullable=False)
    full_name = Column(String(150))
    email = Column(String(255))
    password_hash = Column(String(255), nullable=False)
    role = Column(String(30), nullable=False, default="User")
    department_id = Column(Integer, ForeignKey("departments.department_id"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    needs_password_change = Column(Boolean, default=False, nullable=False)
    machine_shop_user_type = Column(String(10), default="N/A")
    created_at = Column(DateTime, default=_utcnow)

    department = relationship("Department", back_populates="users")


class Trial(Base):
    __tablename__ = "trial_cards"
    trial_id = Column(String(30), primary_key=True)
    part_name = Column(String(200), nullable=False)
    pattern_code = Column(String(150), nullable=False)
    material_grade = Column(String(100))
    initiated_by = Column(String(100))
    date_of_sampling = Column(Date)
    no_of_moulds = Column(Integer)
    plan_moulds = Column(Integer)
    actual_moulds = Column(Integer)
    reason_for_sampling = Column(Text)
    disa = Column(String(50))
    status = Column(String(30), nullable=False, default="OPEN")
    created_at = Column(DateTime, default=_utcnow)
    # soft delete; rows are never removed
    deleted_at = Column(DateTime, nullable=True)
    deleted_by = Column(String(50), nullable=True)


class MasterCard(Base):
    __tablename__ = "master_card"
    id = Column(Integer, primary_key=True, autoincrement=True)
    pattern_code = Column(String(150), unique=True, nullable=False)
    part_name = Column(String(200), nullable=False)
    material_grade = Column(String(100))
    chemical_composition = Column(JSON, default=dict)
    micro_structure = Column(Text)
    tensile = Column(String(50))
    yield_strength = Column("yield", String(50))
    elongation = Column(String(50))
    impact_cold = Column(String(50))
    impact_room = Column(String(50))
    hardness_surface = Column(String(50))
    hardness_core = Column(String(50))
    xray = Column(String(100))
    mpi = Column(String(100))
    number_of_cavity = Column(String(20))
    cavity_identification = Column(String(100))
    pattern_material = Column(String(100))
    core_weight = Column(String(50))
    core_mask_thickness = Column(String(50))
    estimated_casting_weight = Column(String(50))
    estimated_bunch_weight = Column(String(50))
    pattern_plate_thickness_sp = Column(String(50))
    pattern_plate_weight_sp = Column(String(50))
    core_mask_weight_sp = Column(String(50))
    crush_pin_height_sp = Column(String(50))
    pattern_plate_thickness_pp = Column(String(50))
    pattern_plate_weight_pp = Column(String(50))
    crush_pin_height_pp = Column(String(50))
    yield_label = Column(String(50))
    remarks = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class MachineShopRecord(Base):
    __tablename__ = "machine_shop"
    id = Column(Integer, primary_key=True, autoincrement=True)
    trial_id = Column(String(30), ForeignKey("trial_cards.trial_id"), unique=True, nullable=False)
    inspection_date = Column(Date)
    cavities = Column(JSON, default=list)
    rows = Column(JSON, default=list)
    remarks = Column(Text)
    dimensional_report_remarks = Column(Text)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class MaterialCorrectionRecord(Base):
    __tablename__ = "material_correction"
    id = Column(Integer, primary_key=True, autoincrement=True)
    trial_id = Column(String(30), ForeignKey("trial_cards.trial_id"), unique=True, nullable=False)
    chemical_composition = Column(JSON, default=dict)
    process_parameters = Column(JSON, default=dict)
    remarks = Column(Text)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class MetallurgicalInspectionRecord(Base):
    __tablename__ = "metallurgical_inspection"
    id = Column(Integer, primary_key=True, autoincrement=True)
    trial_id = Column(String(30), ForeignKey("trial_cards.trial_id"), unique=True, nullable=False)
    inspection_date = Column(Date)
    micro_rows = Column(JSON, default=list)
    mech_rows = Column(JSON, default=list)
    impact_rows = Column(JSON, default=list)
    hard_rows = Column(JSON, default=list)
    remarks = Column(Text)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class VisualInspectionRecord(Base):
    __tablename__ = "visual_inspection"
    id = Column(Integer, primary_key=True, autoincrement=True)
    trial_id = Column(String(30), ForeignKey("trial_cards.trial_id"), unique=True, nullable=False)
    inspection_date = Column(Date)
    cols = Column(JSON, default=list)
    rows = Column(JSON, default=list)
    ok = Column(Boolean)
    remarks = Column(Text)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class SandPropertiesRecord(Base):
    __tablename__ = "sand_properties"
    id = Column(Integer, primary_key=True, autoincrement=True)
    trial_id = Column(String(30), ForeignKey("trial_cards.trial_id"), unique=True, nullable=False)
    inspection_date = Column(Date)
    t_clay = Column(Float)
    a_clay = Column(Float)
    vcm = Column(Float)
    loi = Column(Float)
    afs = Column(Float)
    gcs = Column(Float)
    moi = Column(Float)
    compactability = Column(Float)
    permeability = Column(Float)
    remarks = Column(Text)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class MechanicalPropertiesRecord(Base):
    __tablename__ = "mechanical_properties"
    id = Column(Integer, primary_key=True, autoincrement=True)
    trial_id = Column(String(30), ForeignKey("trial_cards.trial_id"), unique=True, nullable=False)
    tensile_strength = Column(String(50))
    yield_strength = Column(String(50))
    elongation = Column(String(50))
    impact_strength_cold = Column(String(50))
    impact_strength_room = Column(String(50))
    hardness_surface = Column(String(50))
    hardness_core = Column(String(50))
    x_ray_inspection = Column(String(100))
    mpi = Column(String(100))
    remarks = Column(Text)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class DepartmentProgress(Base):
    __tablename__ = "department_progress"
    progress_id = Column(Integer, primary_key=True, autoincrement=True)
    trial_id = Column(String(30), ForeignKey("trial_cards.trial_id"), nullable=False)
    department_id = Column(Integer, ForeignKey("departments.department_id"), nullable=False)
    username = Column(String(50), ForeignKey("users.username"), nullable=False)
    completed_at = Column(DateTime, default=_utcnow)
    approval_status = Column(String(20), default="pending", nullable=False)
    remarks = Column(Text)

    department = relationship("Department")
    trial = relationship("Trial")


class AuditLog(Base):
    __tablename__ = "audit_log"
    audit_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id"))
    department_id = Column(Integer)
    trial_id = Column(String(30), index=True)
    action = Column(String(100), nullable=False)
    remarks = Column(Text)
    action_timestamp = Column(DateTime, default=_utcnow, nullable=False)


class AuditLogImmutableError(RuntimeError):
    pass


@event.listens_for(AuditLog, "before_update")
def _reject_audit_update(mapper, connection, target):
    raise AuditLogImmutableError("Audit log entries are append-only")


@event.listens_for(AuditLog, "before_delete")
def _reject_audit_delete(mapper, connection, target):
    raise AuditLogImmutableError("Audit log entries are append-only")
