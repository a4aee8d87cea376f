"""Record store for services, bookings, users and doctors.

Pattern: Thin wrapper around SQLAlchemy. One RecordStore is constructed at
startup, shared by all requests, and closed at shutdown.
"""
from typing import Any, Dict, List, Optional
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from drs_care.database_models import Base, Booking, Doctor, Service, User
from drs_care.errors import DuplicateRecordError
from drs_care.logging_config import get_logger
from drs_care.models import BookingRequest, DeleteResult, InsertResult, UpdateResult

logger = get_logger(__name__)


def _engine_options(database_url: str) -> Dict[str, Any]:
    """SQLite needs cross-thread access; in-memory SQLite also needs a single connection."""
    if not database_url.startswith("sqlite"):
        return {"pool_pre_ping": True}

    options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options


class RecordStore:
    """
    Boundary to the four record collections.

    Lookups of a single record return None when absent; callers decide
    what absence means.
    """

    def __init__(self, database_url: str):
        """
        Initialize RecordStore with database connection.

        Args:
            database_url: SQLAlchemy connection string
        """
        self.database_url = database_url
        self.engine = create_engine(database_url, **_engine_options(database_url))
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)
        logger.info("record_store_opened", dialect=self.engine.dialect.name)

    def close(self):
        """Release all pooled connections."""
        self.engine.dispose()
        logger.info("record_store_closed")

    # Services

    def list_services(self) -> List[Dict[str, Any]]:
        with self.SessionLocal() as db:
            services = db.query(Service).order_by(Service.id).all()
            return [s.to_record() for s in services]

    def list_service_names(self) -> List[Dict[str, str]]:
        with self.SessionLocal() as db:
            names = db.query(Service.name).order_by(Service.id).all()
            return [{"name": name} for (name,) in names]

    def add_service(self, name: str, slots: List[str]) -> InsertResult:
        """Insert a service. Used for seeding; there is no HTTP route for it."""
        with self.SessionLocal() as db:
            db.add(Service(name=name, slots=list(slots)))
            self._commit(db, f"Service '{name}' already exists")
        return InsertResult(inserted_id=name)

    # Bookings

    def find_bookings(
        self,
        date: Optional[str] = None,
        patient_email: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        List bookings, optionally filtered by exact date label and/or patient email.

        Args:
            date: Date label, compared by equality
            patient_email: Patient email, compared by equality

        Returns:
            Booking records in insertion order
        """
        with self.SessionLocal() as db:
            query = db.query(Booking)
            if date is not None:
                query = query.filter(Booking.date == date)
            if patient_email is not None:
                query = query.filter(Booking.patient_email == patient_email)
            return [b.to_record() for b in query.order_by(Booking.id).all()]

    def find_booking(
        self,
        treatment: str,
        date: str,
        patient_email: Optional[str]
    ) -> Optional[Dict[str, Any]]:
        """Return the booking matching (treatment, date, patient_email), or None."""
        with self.SessionLocal() as db:
            booking = db.query(Booking).filter(
                Booking.treatment == treatment,
                Booking.date == date,
                Booking.patient_email.is_(None) if patient_email is None
                else Booking.patient_email == patient_email,
            ).order_by(Booking.id).first()
            return booking.to_record() if booking else None

    def insert_booking(self, request: BookingRequest) -> InsertResult:
        with self.SessionLocal() as db:
            booking = Booking(
                treatment=request.treatment,
                date=request.date,
                slot=request.slot,
                patient_email=request.patient_email,
                patient_name=request.patient_name,
                extra=request.extra_fields(),
            )
            db.add(booking)
            db.commit()
            return InsertResult(inserted_id=booking.id)

    # Users

    def list_users(self) -> List[Dict[str, Any]]:
        with self.SessionLocal() as db:
            return [u.to_record() for u in db.query(User).order_by(User.email).all()]

    def find_user(self, email: str) -> Optional[Dict[str, Any]]:
        with self.SessionLocal() as db:
            user = db.get(User, email)
            return user.to_record() if user else None

    def upsert_user(self, email: str, fields: Dict[str, Any]) -> UpdateResult:
        """
        Merge profile fields into the user keyed by email, creating it if absent.

        Role is not touched here; see set_user_role().

        Args:
            email: User email (primary key)
            fields: Profile fields to set

        Returns:
            UpdateResult describing whether the user was matched, changed or created
        """
        fields = {k: v for k, v in fields.items() if k not in ("email", "role", "_id")}

        with self.SessionLocal() as db:
            user = db.get(User, email)
            if user is None:
                db.add(User(email=email, profile=fields))
                self._commit(db, f"User '{email}' already exists")
                return UpdateResult(matched_count=0, modified_count=0, upserted_id=email)

            merged = dict(user.profile or {})
            merged.update(fields)
            modified = merged != (user.profile or {})
            if modified:
                user.profile = merged
                db.commit()
            return UpdateResult(matched_count=1, modified_count=int(modified))

    def set_user_role(self, email: str, role: str) -> UpdateResult:
        """Set role on an existing user. Does not create missing users."""
        with self.SessionLocal() as db:
            user = db.get(User, email)
            if user is None:
                return UpdateResult(matched_count=0, modified_count=0)

            modified = user.role != role
            if modified:
                user.role = role
                db.commit()
            return UpdateResult(matched_count=1, modified_count=int(modified))

    # Doctors

    def list_doctors(self) -> List[Dict[str, Any]]:
        with self.SessionLocal() as db:
            return [d.to_record() for d in db.query(Doctor).order_by(Doctor.created_at).all()]

    def insert_doctor(self, email: str, profile: Dict[str, Any]) -> InsertResult:
        with self.SessionLocal() as db:
            db.add(Doctor(email=email, profile=dict(profile)))
            self._commit(db, f"Doctor '{email}' already exists")
        return InsertResult(inserted_id=email)

    def delete_doctor(self, email: str) -> DeleteResult:
        with self.SessionLocal() as db:
            deleted = db.query(Doctor).filter(Doctor.email == email).delete()
            db.commit()
            return DeleteResult(deleted_count=deleted)

    @staticmethod
    def _commit(db, duplicate_message: str):
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise DuplicateRecordError(duplicate_message) from e
