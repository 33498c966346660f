import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import models  # noqa: F401
from .config import ALLOWED_ORIGINS, SECURITY_HEADERS_ENABLED
from .database import Base, engine
from .domain.consultations.router import router as consultations_router
from .domain.locations.router import router as locations_router
from .domain.patients.router import router as patients_router
from .security_headers import SecurityHeadersMiddleware

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

for noisy in ("httpx", "httpcore"):
    logging.getLogger(noisy).setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 DocSlot API starting")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
    except Exception as e:
        # Workers started together can race on CREATE TABLE
        if "already exists" not in str(e):
            logger.error(f"❌ Could not create tables: {e}")
            raise
        logger.info("Tables were created by another worker")

    yield
    logger.info("DocSlot API stopped")


app = FastAPI(title="DocSlot API", version="1.0.0", lifespan=lifespan)


def _error_list(exc: RequestValidationError) -> list:
    # ``ctx`` may carry the raised ValueError, which JSON cannot encode
    return [
        {key: (str(value) if key == "ctx" else value) for key, value in error.items()}
        for error in exc.errors()
    ]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """A missing or malformed bearer header is an auth failure, not a bad body"""
    if any("authorization" in str(error.get("loc", "")).lower() for error in exc.errors()):
        logger.warning(f"🔒 {request.method} {request.url.path} without a usable bearer token")
        return JSONResponse(status_code=401, content={"detail": "Not authenticated"})

    logger.info(f"Rejected input for {request.url.path}: {len(exc.errors())} error(s)")
    return JSONResponse(status_code=422, content={"detail": _error_list(exc)})


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"])
else:
    logger.warning("⚠️ Security headers disabled")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(consultations_router)
app.include_router(locations_router)
app.include_router(patients_router)


@app.get("/")
def root():
    return {"message": "DocSlot API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
