"""FastAPI server for the Drs Care booking backend.

Features:
- Service listing and per-date slot availability
- Booking creation with confirmation email (sent after the response)
- Token-protected user and booking queries
- Admin-only doctor management and role promotion
- Structured logging with request IDs
"""
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import BackgroundTasks, Body, Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from drs_care import __version__
from drs_care.auth import TokenService
from drs_care.availability import AvailabilityCalculator
from drs_care.booking import BookingRegistrar
from drs_care.config import Settings, load_settings
from drs_care.dependencies import (
    get_calculator,
    get_registrar,
    get_settings,
    get_store,
    get_token_service,
    require_admin,
    verify_token,
)
from drs_care.errors import DuplicateRecordError, ForbiddenError, UnauthenticatedError
from drs_care.logging_config import RequestIDMiddleware, get_logger, setup_structured_logging
from drs_care.models import (
    AdminStatus,
    AvailableService,
    BookingRequest,
    BookingResponse,
    DeleteResult,
    DoctorRequest,
    InsertResult,
    MessageResponse,
    RoleUpdateResponse,
    ServiceName,
    UserUpsertResponse,
)
from drs_care.notifications import LoggingTransport, MailTransport, NotificationDispatcher, SendGridTransport
from drs_care.store import RecordStore

logger = get_logger(__name__)


def build_transport(settings: Settings) -> MailTransport:
    """SendGrid when an API key is configured, otherwise log-only."""
    if settings.email_sender_key:
        return SendGridTransport(settings.email_sender_key, settings.sendgrid_api_url)
    logger.warning("EMAIL_SENDER_KEY not set; confirmation emails will only be logged")
    return LoggingTransport()


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RecordStore] = None,
    transport: Optional[MailTransport] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Runtime settings (default: from environment)
        store: Pre-built record store; when omitted the app opens and closes its own
        transport: Mail transport; when omitted one is built from settings

    Returns:
        Configured FastAPI app
    """
    settings = settings or load_settings()
    setup_structured_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup/shutdown logic."""
        logger.info("Drs Care API starting up...")

        owned_store = store is None
        record_store = store or RecordStore(settings.database_url)
        mail_transport = transport or build_transport(settings)
        dispatcher = NotificationDispatcher(
            mail_transport, settings.sender_email, settings.clinic_address
        )

        app.state.settings = settings
        app.state.store = record_store
        app.state.token_service = TokenService(
            settings.access_token_secret, settings.access_token_ttl_seconds
        )
        app.state.calculator = AvailabilityCalculator()
        app.state.registrar = BookingRegistrar(record_store, dispatcher)

        yield

        if owned_store:
            record_store.close()
        if transport is None and hasattr(mail_transport, "close"):
            mail_transport.close()
        logger.info("Drs Care API shutting down...")

    app = FastAPI(
        title="Drs Care API",
        description="Appointment booking backend for a medical practice",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)
    register_routes(app)
    return app


def register_exception_handlers(app: FastAPI):

    @app.exception_handler(UnauthenticatedError)
    async def unauthenticated_handler(request: Request, exc: UnauthenticatedError):
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=MessageResponse(message=str(exc)).model_dump(exclude_none=True),
        )

    @app.exception_handler(ForbiddenError)
    async def forbidden_handler(request: Request, exc: ForbiddenError):
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content=MessageResponse(message=str(exc)).model_dump(exclude_none=True),
        )

    @app.exception_handler(DuplicateRecordError)
    async def duplicate_handler(request: Request, exc: DuplicateRecordError):
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=MessageResponse(message=str(exc)).model_dump(exclude_none=True),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Missing required fields are the only validation performed."""
        logger.warning("validation_error", errors=jsonable_encoder(exc.errors()))
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=MessageResponse(
                message="validation error",
                detail=jsonable_encoder(exc.errors()),
            ).model_dump(),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch-all handler for unexpected exceptions."""
        logger.error("unexpected_error", error=str(exc), path=request.url.path, exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=MessageResponse(message="internal server error").model_dump(exclude_none=True),
        )


def register_routes(app: FastAPI):

    @app.get("/", tags=["Root"], response_class=PlainTextResponse)
    async def root():
        return "hello world"

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for load balancers."""
        return {
            "status": "healthy",
            "service": "drs-care-api",
            "version": __version__
        }

    @app.get("/service", tags=["Services"], response_model=List[ServiceName])
    def list_services(store: RecordStore = Depends(get_store)):
        return store.list_service_names()

    @app.get("/available", tags=["Services"], response_model=List[AvailableService])
    def available(
        date: Optional[str] = None,
        store: RecordStore = Depends(get_store),
        calculator: AvailabilityCalculator = Depends(get_calculator),
        settings: Settings = Depends(get_settings),
    ):
        """
        Services with the slots still free on a date.

        Args:
            date: Date label (default: configured fallback date)
        """
        date = date or settings.default_available_date
        services = store.list_services()
        bookings = store.find_bookings(date=date)
        return calculator.available_services(services, bookings)

    @app.get("/booking", tags=["Bookings"])
    def patient_bookings(
        patient: Optional[str] = None,
        identity: Dict[str, Any] = Depends(verify_token),
        store: RecordStore = Depends(get_store),
    ) -> List[Dict[str, Any]]:
        """Bookings of the calling patient. ?patient= must equal the token's email."""
        if identity["email"] != patient:
            raise ForbiddenError()
        return store.find_bookings(patient_email=patient)

    @app.post(
        "/booking",
        tags=["Bookings"],
        response_model=BookingResponse,
        response_model_exclude_none=True,
    )
    def create_booking(
        booking: BookingRequest,
        background_tasks: BackgroundTasks,
        registrar: BookingRegistrar = Depends(get_registrar),
    ):
        """
        Create a booking unless the patient already booked this treatment on this date.

        The confirmation email is sent after the response and cannot fail the request.
        """
        outcome = registrar.register(booking, schedule=background_tasks.add_task)
        return outcome.to_response()

    @app.get("/user", tags=["Users"])
    def list_users(
        identity: Dict[str, Any] = Depends(verify_token),
        store: RecordStore = Depends(get_store),
    ) -> List[Dict[str, Any]]:
        return store.list_users()

    @app.get("/admin/{email}", tags=["Users"], response_model=AdminStatus)
    def admin_status(email: str, store: RecordStore = Depends(get_store)):
        """Whether email belongs to an admin. Unknown users are not admins."""
        user = store.find_user(email)
        return AdminStatus(admin=user is not None and user.get("role") == "admin")

    @app.put("/user/admin/{email}", tags=["Users"], response_model=RoleUpdateResponse)
    def promote_to_admin(
        email: str,
        identity: Dict[str, Any] = Depends(require_admin),
        store: RecordStore = Depends(get_store),
    ):
        result = store.set_user_role(email, "admin")
        logger.info("user_promoted", email=email, promoted_by=identity["email"],
                    matched=result.matched_count)
        return RoleUpdateResponse(result=result)

    @app.put("/user/{email}", tags=["Users"], response_model=UserUpsertResponse)
    def upsert_user(
        email: str,
        profile: Optional[Dict[str, Any]] = Body(None),
        store: RecordStore = Depends(get_store),
        tokens: TokenService = Depends(get_token_service),
    ):
        """Create or update a user and return a fresh one-hour access token."""
        result = store.upsert_user(email, profile or {})
        return UserUpsertResponse(result=result, token=tokens.issue(email))

    @app.get("/doctor", tags=["Doctors"])
    def list_doctors(
        identity: Dict[str, Any] = Depends(require_admin),
        store: RecordStore = Depends(get_store),
    ) -> List[Dict[str, Any]]:
        return store.list_doctors()

    @app.post("/doctor", tags=["Doctors"], response_model=InsertResult)
    def add_doctor(
        doctor: DoctorRequest,
        identity: Dict[str, Any] = Depends(require_admin),
        store: RecordStore = Depends(get_store),
    ):
        return store.insert_doctor(doctor.email, doctor.profile())

    @app.delete("/doctor/{email}", tags=["Doctors"], response_model=DeleteResult)
    def remove_doctor(
        email: str,
        identity: Dict[str, Any] = Depends(require_admin),
        store: RecordStore = Depends(get_store),
    ):
        return store.delete_doctor(email)


app = create_app()


def main():
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "drs_care.api_server:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
