"""SQLAlchemy models for the four record collections."""
from datetime import datetime, UTC
from sqlalchemy import Column, Integer, Text, DateTime, JSON
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utc_now():
    """Get current UTC timestamp."""
    return datetime.now(UTC)


class Service(Base):
    """Bookable treatment with its fixed list of slot labels."""
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False, unique=True, index=True)
    slots = Column(JSON, nullable=False, default=list)  # Ordered slot labels

    def to_record(self) -> dict:
        return {"name": self.name, "slots": list(self.slots or [])}

    def __repr__(self):
        return f"<Service(name={self.name}, slots={len(self.slots or [])})>"


class Booking(Base):
    """Patient booking. (treatment, date, patient_email) is unique by convention only."""
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    treatment = Column(Text, nullable=False, index=True)
    date = Column(Text, nullable=False, index=True)
    slot = Column(Text, nullable=False)
    patient_email = Column(Text, nullable=True, index=True)
    patient_name = Column(Text, nullable=True)
    extra = Column(JSON, nullable=False, default=dict)  # Caller-supplied fields kept as-is
    created_at = Column(DateTime, default=utc_now, nullable=False)

    def to_record(self) -> dict:
        record = dict(self.extra or {})
        record.update({
            "_id": self.id,
            "treatment": self.treatment,
            "date": self.date,
            "slot": self.slot,
            "patientEmail": self.patient_email,
            "patientName": self.patient_name,
        })
        return record

    def __repr__(self):
        return f"<Booking(id={self.id}, treatment={self.treatment}, date={self.date})>"


class User(Base):
    """Known user keyed by email. role is 'admin' or NULL."""
    __tablename__ = "users"

    email = Column(Text, primary_key=True, index=True)
    role = Column(Text, nullable=True)
    profile = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    def to_record(self) -> dict:
        record = dict(self.profile or {})
        record["email"] = self.email
        if self.role is not None:
            record["role"] = self.role
        return record

    def __repr__(self):
        return f"<User(email={self.email}, role={self.role})>"


class Doctor(Base):
    """Doctor profile keyed by email."""
    __tablename__ = "doctors"

    email = Column(Text, primary_key=True, index=True)
    profile = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    def to_record(self) -> dict:
        record = dict(self.profile or {})
        record["email"] = self.email
        return record

    def __repr__(self):
        return f"<Doctor(email={self.email})>"
