import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from .config import settings
from .database import SessionLocal, init_db
from .routers import advisors, bookings, links, slots
from .services.exceptions import SchedulingError, StoreUnavailable

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_db()
    logger.info("Scheduling API started")
    yield


app = FastAPI(title="Advisor Scheduling API", lifespan=lifespan)

app.include_router(advisors.router)
app.include_router(links.router)
app.include_router(slots.router)
app.include_router(bookings.router)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(_: Request, exc: SchedulingError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code, **_jsonable(exc.details)},
    )


@app.exception_handler(OperationalError)
async def store_error_handler(request: Request, exc: OperationalError):
    logger.exception(f"Store failure on {request.method} {request.url.path}")
    unavailable = StoreUnavailable()
    return JSONResponse(
        status_code=unavailable.status_code,
        content={"detail": unavailable.message, "code": unavailable.code},
    )


@app.get("/health")
def health():
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return {"database": True}
    except OperationalError:
        logger.exception("Health check failed")
        return JSONResponse(status_code=503, content={"database": False})
    finally:
        db.close()


def _jsonable(details: dict) -> dict:
    return {
        key: value.isoformat() if hasattr(value, "isoformat") else value
        for key, value in details.items()
    }
