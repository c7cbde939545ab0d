import logging
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.exceptions import AppError
from app.routers import (
    auth_router, order_router, message_router,
    admin_router, payment_detail_router, gig_router,
)

# --- Import every model module ---
# so SQLAlchemy registers all tables at startup.
from app.models import user
from app.models import gig
from app.models import order
from app.models import message
from app.models import payment_detail


logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Gig Marketplace API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error envelope ---

def _error_response(status_code: int, message: str, error: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "error": error},
        headers=headers,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # AppError carries its own code; plain HTTPExceptions (404 route, 405...) get a generic one
    error_code = exc.error_code if isinstance(exc, AppError) else "http_error"
    return _error_response(exc.status_code, str(exc.detail), error_code, getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = jsonable_encoder(exc.errors())
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", []) if p != "body")
    message = f"{field}: {first.get('msg')}" if field else str(first.get("msg", "Invalid request"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": message, "error": "validation_error", "details": errors},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", "internal_error")


# --- Root / health ---
@app.get("/")
def read_root():
    return {"success": True, "message": "Gig marketplace API is running"}


@app.get("/health")
def health():
    return {"success": True, "message": "OK"}


# --- API routers ---
app.include_router(auth_router.router)
app.include_router(order_router.router)
app.include_router(message_router.router)
app.include_router(admin_router.router)
app.include_router(payment_detail_router.router)
app.include_router(gig_router.router)
