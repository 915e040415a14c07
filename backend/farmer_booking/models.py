from __future__ import annotations

import datetime as dt
from decimal import Decimal
from enum import StrEnum
from typing import Optional

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql.sqltypes import BigInteger, Date, DateTime, Integer, Numeric, String


# SQLite only autoincrements INTEGER primary keys.
_PK = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    pass


class TimeSlot(StrEnum):
    AM = "AM"
    PM = "PM"


class AppointmentStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Gender(StrEnum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


def _enum_column(enum_cls: type[StrEnum], length: int) -> Enum:
    return Enum(
        enum_cls,
        values_callable=lambda cls: [e.value for e in cls],
        native_enum=False,
        length=length,
    )


class Region(Base):
    __tablename__ = "regions"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    branches: Mapped[list["Branch"]] = relationship(back_populates="region")


class Branch(Base):
    __tablename__ = "branches"
    __table_args__ = (Index("idx_branches_region", "region_id"),)

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    region_id: Mapped[int] = mapped_column(ForeignKey("regions.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    region: Mapped["Region"] = relationship(back_populates="branches")
    volume_capacity: Mapped[Optional["VolumeCapacity"]] = relationship(back_populates="branch", uselist=False)


class FarmerType(Base):
    __tablename__ = "farmer_types"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class VolumeCapacity(Base):
    __tablename__ = "volume_capacity"
    __table_args__ = (
        CheckConstraint("warehouse_capacity >= 0", name="chk_volume_capacity"),
        CheckConstraint("inventory >= 0", name="chk_volume_inventory"),
    )

    branch_id: Mapped[int] = mapped_column(ForeignKey("branches.id"), primary_key=True)
    warehouse_capacity: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    inventory: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    branch: Mapped["Branch"] = relationship(back_populates="volume_capacity")


class BranchSlotCapacity(Base):
    """Headcount per slot. A row without ``date`` is the branch default."""

    __tablename__ = "branch_slot_capacity"
    __table_args__ = (
        CheckConstraint("capacity_am >= 0", name="chk_slot_capacity_am"),
        CheckConstraint("capacity_pm >= 0", name="chk_slot_capacity_pm"),
        UniqueConstraint("branch_id", "date", name="uq_slot_capacity_branch_date"),
        Index("idx_slot_capacity_branch", "branch_id"),
    )

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    branch_id: Mapped[int] = mapped_column(ForeignKey("branches.id"), nullable=False)
    date: Mapped[Optional[dt.date]] = mapped_column(Date, nullable=True)
    capacity_am: Mapped[int] = mapped_column(Integer, nullable=False)
    capacity_pm: Mapped[int] = mapped_column(Integer, nullable=False)


class Holiday(Base):
    """A closed day. A row without ``branch_id`` closes every branch."""

    __tablename__ = "holidays"
    __table_args__ = (Index("idx_holidays_date", "holiday_date"),)

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    holiday_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    branch_id: Mapped[Optional[int]] = mapped_column(ForeignKey("branches.id"), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint("volume > 0", name="chk_appointments_volume"),
        UniqueConstraint("reference_number", name="uq_appointments_reference"),
        Index("idx_appointments_branch_date", "branch_id", "date", "time_slot"),
    )

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    branch_id: Mapped[int] = mapped_column(ForeignKey("branches.id"), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    time_slot: Mapped[TimeSlot] = mapped_column(_enum_column(TimeSlot, 2), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    middle_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    contact_number: Mapped[str] = mapped_column(String(30), nullable=False)
    gender: Mapped[Optional[Gender]] = mapped_column(_enum_column(Gender, 10), nullable=True)
    farmer_type_id: Mapped[Optional[int]] = mapped_column(ForeignKey("farmer_types.id"), nullable=True)
    volume: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    status: Mapped[AppointmentStatus] = mapped_column(
        _enum_column(AppointmentStatus, 20),
        nullable=False,
        default=AppointmentStatus.PENDING,
    )
    reference_number: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False)
