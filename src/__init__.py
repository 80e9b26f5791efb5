from fastapi import FastAPI, HTTPException, Request, status
from contextlib import asynccontextmanager
import asyncio
import logging
from src.config import Config
from src.db.main import init_db, async_session_maker
from src.db.redis import redis_client, check_redis_connection

from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi import _rate_limit_exceeded_handler

from src.auth.routes import authRouter
from src.customers.routes import customer_router
from src.debits.routes import debit_router
from src.debits.services import DebitProcessor
from src.debits.scheduler import DebitScheduler
from src.utils.limiter import limiter


logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


async def start_scheduler_later(scheduler: DebitScheduler, delay: float):
    await asyncio.sleep(delay)
    scheduler.start()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("---Server Started---")

    # 1. Initialize Postgres
    await init_db()

    # 2. Check Redis Connection
    await check_redis_connection()

    # 3. One processor and scheduler for the whole process
    processor = DebitProcessor(async_session_maker)
    scheduler = DebitScheduler(processor, interval_seconds=Config.DEBIT_INTERVAL_SECONDS)
    app.state.debit_processor = processor
    app.state.debit_scheduler = scheduler

    delayed_start = None
    if Config.SCHEDULER_ENABLED:
        delayed_start = asyncio.create_task(
            start_scheduler_later(scheduler, Config.SCHEDULER_START_DELAY_SECONDS)
        )

    yield

    # 4. Stop the timer and let an in-flight run finish
    if delayed_start is not None:
        delayed_start.cancel()
    scheduler.stop()
    await scheduler.drain()

    logger.info("---Closing Redis Connection---")
    if redis_client:
        await redis_client.aclose()
    logger.info("---Server Closed---")

app = FastAPI(
    title="Hourly Debit API",
    description="Customer balances debited on an hourly schedule, with an audit log of every debit",
    lifespan = lifespan
)

# Required for SlowAPI to function correctly on routes
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
def health_check():
    return{
        "status": "Success",
        "message": "Server Working"
    }

@app.exception_handler(HTTPException)
async def custom_http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.detail,
            "data": None
        }
    )

def format_validation_errors(errors):
    formatted = []
    for err in errors:
        # Skip the first element if it's "body", "query", etc.
        loc = err["loc"]
        field = ".".join(str(l) for l in loc[1:]) if len(loc) > 1 else str(loc[0])
        formatted.append({
            "field": field,
            "message": err["msg"]
        })
    return formatted

@app.exception_handler(RequestValidationError)
async def custom_validation_exception_handler(request:Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "message": "Validation error",
            "errors": format_validation_errors(exc.errors()),
            "data": None
        }
    )

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "message": "Internal server error",
            "data": None
        }
    )

# Register all routers
app.include_router(authRouter, prefix="/api/auth", tags=["Authentication"])
app.include_router(customer_router, prefix="/api/customers", tags=["Customers"])
app.include_router(debit_router, prefix="/api/debit-processor", tags=["Debit Processor"])
