"""Operator SQLAlchemy model."""

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from machine_service.core.database import Base


class Operator(Base):
    """A workstation operator, keyed by EPF number."""

    __tablename__ = "operators"

    epf_number: Mapped[str] = mapped_column(String(20), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
