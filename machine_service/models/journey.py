"""MachineJourney and MachineRecord SQLAlchemy models."""

from datetime import datetime

from sqlalchemy import JSON, BigInteger, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from machine_service.core.database import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JsonList = JSON().with_variant(JSONB(), "postgresql")


class MachineJourneyRow(Base):
    """One physical machine moving through the service workstations."""

    __tablename__ = "machine_journeys"

    barcode_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    current_workstation: Mapped[int | None] = mapped_column(
        Integer, nullable=True, comment="Station the machine is checked in to, if any"
    )
    completed_workstations: Mapped[list] = mapped_column(
        JsonList, nullable=False, default=list, comment="Stations finished, in order"
    )
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="Set on check-out from the final station"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    records: Mapped[list["MachineRecordRow"]] = relationship(
        back_populates="journey",
        cascade="all, delete-orphan",
        order_by="MachineRecordRow.id",
    )


class MachineRecordRow(Base):
    """A single station visit (check-in to check-out)."""

    __tablename__ = "machine_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    barcode_id: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("machine_journeys.barcode_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    workstation: Mapped[int] = mapped_column(Integer, nullable=False)
    operator_name: Mapped[str] = mapped_column(String(100), nullable=False)
    operator_epf: Mapped[str] = mapped_column(String(20), nullable=False)
    checkin_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    checkout_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    wait_time_ms: Mapped[int | None] = mapped_column(
        BigInteger, nullable=True, comment="Estimated queue wait computed at check-in"
    )
    tasks_completed: Mapped[list] = mapped_column(JsonList, nullable=False, default=list)
    total_tasks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    journey: Mapped["MachineJourneyRow"] = relationship(back_populates="records")
