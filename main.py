# main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from utils.errors import ErrorCode, ErrorDetail
from utils.exceptions import (
    APIError,
    DuplicateKeyError,
    FileTooLargeError,
    RecordNotFoundError,
    RecordValidationError,
    StoreUnavailableError,
)
from schemas.auth import AccessDenied
from schemas.common import UnifiedAPIResponse
from schemas.whitelist import WhitelistEntryCreate
# Core and services
from core.config import get_config_manager, ConfigManager
from core.logging import setup_logging
from core.database import DatabaseFactory
from core.audit.log import AuditLog
from core.auth.ip_filter import AccessGate
from core.auth.token import TokenService
from core.auth.service import AuthService
from core.files.store import FileStore
from core.stats import DashboardService
from core.users.service import UserService
from core.whitelist.store import WhitelistStore
# API Routers
from api.dependencies import AccessDeniedError
from api.internal.auth import router as internal_auth_router
from api.internal.files import router as internal_files_router
from api.internal.whitelist import router as internal_whitelist_router, self_service_router
from api.internal.access_logs import router as internal_access_logs_router
from api.internal.users import router as internal_users_router
from api.internal.system import router as internal_system_router
from api.openapi.scripts import router as openapi_scripts_router


logger = logging.getLogger(f"vipgate.{__name__}")

LOCALHOST_IP = "127.0.0.1"


def _bootstrap(config_manager: ConfigManager, users: UserService, whitelist: WhitelistStore):
    """First-run data: the main admin account and a localhost whitelist entry."""
    users.ensure_bootstrap_admin(config_manager.get_config("bootstrap.admin_password", "password"))
    if config_manager.get_config("bootstrap.whitelist_localhost", True) and whitelist.get_by_ip(LOCALHOST_IP) is None:
        whitelist.create(WhitelistEntryCreate(ip_address=LOCALHOST_IP, description="Localhost"))
        logger.info("Localhost added to the IP whitelist.")


def _error_response(status_code: int, error: ErrorDetail, message: Optional[str] = None, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=UnifiedAPIResponse(
            success=False,
            error_code=error.code,
            message=message or error.message,
            error_details=details,
            data=None
        ).model_dump(exclude_none=True)
    )


def create_app(config_manager: Optional[ConfigManager] = None) -> FastAPI:
    """
    Builds the application. Configuration is resolved at startup, so
    importing this module touches neither the filesystem nor the database.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # 1. Configuration
        config = config_manager or get_config_manager()
        app.state.config = config

        # 2. Logging
        setup_logging(config)
        logger.info("Logging initialized.")

        # 3. Database
        db_config = config.get_config("database", {"type": "sqlite", "path": "data/db/vipgate.db"})
        db_service = DatabaseFactory.create_database(db_config)
        if not db_service.connect():
            logger.critical("Failed to connect to the database. Application cannot start.")
            raise RuntimeError("Database connection failed")
        app.state.db = db_service
        logger.info("Database service connected.")

        # 4. Stores
        whitelist = WhitelistStore(db_service)
        file_store = FileStore(db_service, config)
        audit_log = AuditLog(db_service, resolve_filename=file_store.resolve_original_name)
        app.state.whitelist = whitelist
        app.state.file_store = file_store
        app.state.audit_log = audit_log
        app.state.access_gate = AccessGate(whitelist, audit_log)
        app.state.dashboard = DashboardService(file_store, whitelist, audit_log)
        logger.info("Stores initialized.")

        # 5. Auth
        user_service = UserService(db_service, config)
        token_service = TokenService(db_service, config)
        app.state.user_service = user_service
        app.state.token_service = token_service
        app.state.auth_service = AuthService(token_service, config)
        token_service.purge_expired_revocations()
        logger.info("AuthService initialized.")

        # 6. First-run data
        _bootstrap(config, user_service, whitelist)

        yield

        logger.info("Application shutdown...")
        db_service.disconnect()
        logger.info("Application shutdown complete.")

    app = FastAPI(
        title="VIP Gate",
        description="IP-whitelist gated delivery of VIP scripts, with an audit log of every access.",
        version="1.0.0",
        lifespan=lifespan,
    )

    # --- Middleware ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception Handlers ---

    @app.exception_handler(AccessDeniedError)
    async def access_denied_handler(request: Request, exc: AccessDeniedError):
        return JSONResponse(status_code=403, content=AccessDenied(ip_address=exc.decision.ip_address).model_dump())

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        return JSONResponse(
            status_code=exc.status_code,
            content=UnifiedAPIResponse(
                success=False,
                error_code=exc.error_code,
                message=exc.detail,
                error_details=exc.details,
                data=None
            ).model_dump(exclude_none=True)
        )

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
        logger.error(f"Store unavailable while handling {request.url.path}: {exc}")
        return _error_response(500, ErrorCode.COMMON_STORE_UNAVAILABLE)

    @app.exception_handler(DuplicateKeyError)
    async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
        return _error_response(409, ErrorCode.COMMON_DUPLICATE_KEY)

    @app.exception_handler(RecordNotFoundError)
    async def not_found_handler(request: Request, exc: RecordNotFoundError):
        return _error_response(404, ErrorCode.COMMON_NOT_FOUND, str(exc))

    @app.exception_handler(RecordValidationError)
    async def record_validation_handler(request: Request, exc: RecordValidationError):
        if isinstance(exc, FileTooLargeError):
            return _error_response(413, ErrorCode.FILE_TOO_LARGE, str(exc))
        return _error_response(400, ErrorCode.COMMON_VALIDATION_ERROR, str(exc))

    @app.exception_handler(ValidationError)
    async def model_validation_handler(request: Request, exc: ValidationError):
        errors = [{"field": ".".join(str(item) for item in e["loc"]), "message": e["msg"], "error_type": e["type"]}
                  for e in exc.errors()]
        return _error_response(400, ErrorCode.COMMON_VALIDATION_ERROR, details={"errors": errors})

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=UnifiedAPIResponse(
                success=False,
                error_code=f"HTTP_{exc.status_code}",
                message=exc.detail,
                data=None,
                error_details=None
            ).model_dump(exclude_none=True)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = []
        for error in exc.errors():
            loc = error["loc"]
            field_name = ".".join(str(item) for item in loc if item != "body")

            errors.append({
                "field": field_name,
                "message": error["msg"],
                "error_type": error["type"]
            })

        return _error_response(422, ErrorCode.COMMON_VALIDATION_ERROR, details={"errors": errors})

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception for request {request.url}: {exc}", exc_info=True)
        return _error_response(500, ErrorCode.COMMON_INTERNAL_ERROR)

    # --- API Routers ---
    app.include_router(openapi_scripts_router, tags=["Public - Scripts"])
    app.include_router(internal_auth_router, prefix="/api/auth", tags=["Internal - Auth"])
    app.include_router(internal_files_router, prefix="/api/files", tags=["Internal - Files"])
    app.include_router(internal_whitelist_router, prefix="/api/ip-whitelist", tags=["Internal - IP Whitelist"])
    app.include_router(self_service_router, prefix="/api", tags=["Internal - IP Whitelist"])
    app.include_router(internal_access_logs_router, prefix="/api/access-logs", tags=["Internal - Access Logs"])
    app.include_router(internal_users_router, prefix="/api/users", tags=["Internal - Users"])
    app.include_router(internal_system_router, prefix="/api", tags=["Internal - System"])

    # --- Root Endpoint ---
    @app.get("/", tags=["Root"])
    async def read_root():
        return {"message": f"Welcome to VIP Gate (Version {app.version})"}

    return app


app = create_app()

# Run with: uvicorn main:app --host 0.0.0.0 --port 5000
