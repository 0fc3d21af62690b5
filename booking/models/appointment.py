from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Index, text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)

    # Owner is always the authenticated caller, never client-supplied
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Appointment details
    date = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    all_day = Column(Boolean, nullable=False, default=False)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="appointments")

    __table_args__ = (
        Index("ix_appointments_owner_date", "owner_id", "date"),
        # At most one all-day appointment per owner and date
        Index(
            "uq_appointments_owner_date_all_day",
            "owner_id",
            "date",
            unique=True,
            sqlite_where=text("all_day"),
            postgresql_where=text("all_day"),
        ),
    )

    def __repr__(self):
        return f"<Appointment(id={self.id}, owner_id={self.owner_id}, date='{self.date}', all_day={self.all_day})>"
