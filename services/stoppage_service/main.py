# services/stoppage_service/main.py

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from config import settings
from database import engine, ensure_schema
from errors import StoppageError, StoppageValidationError
from models import Base
from routers import machines as machines_router
from routers import stoppages as stoppages_router
from utils.logging import setup_logging

# --- Логирование ---
logger = setup_logging()

# --- Приложение FastAPI ---
app = FastAPI(
    title=settings.SERVICE_NAME,
    version=settings.VERSION,
    description="Stoppage Service — учёт простоев станков и вычисление их статуса",
)

# --- Метрики Prometheus ---
if settings.METRICS_ENABLED:
    Instrumentator().instrument(app).expose(app, endpoint=settings.METRICS_PATH, include_in_schema=False)


# --- События приложения ---
@app.on_event("startup")
def startup_event():
    """Создание схемы и таблиц при запуске."""
    ensure_schema()
    Base.metadata.create_all(bind=engine)
    logger.info("🏭 stoppage_service started and schema ensured.")


# --- Ошибки жизненного цикла → HTTP ---
@app.exception_handler(StoppageError)
async def stoppage_error_handler(request: Request, exc: StoppageError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_dict()})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Ошибки разбора тела и параметров отдаются в том же формате, что и VALIDATION."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    error = StoppageValidationError("Invalid request: " + "; ".join(problems))
    logger.warning(f"⚠️ {request.method} {request.url.path} rejected: {error.message}")
    return JSONResponse(status_code=error.status_code, content={"detail": error.to_dict()})


# --- Health & readiness ---
@app.get("/health", tags=["system"])
async def health():
    return {"status": "ok", "service": "stoppage_service"}


@app.get("/ready", tags=["system"])
async def ready():
    return {"status": "ready"}


@app.get("/", include_in_schema=False)
async def root():
    return {"message": "Stoppage Service is operational"}


# --- Роутеры ---
app.include_router(stoppages_router.router)
app.include_router(machines_router.router)
