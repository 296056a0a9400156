import logging
import time
from contextlib import AsyncExitStack

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from mongoengine.errors import NotUniqueError, ValidationError as DocumentValidationError
from pymongo.errors import ConnectionFailure
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.connections import mongo_lifespan, redis_lifespan
from app.api.auth import router as auth_router
from app.api.bootcamps import router as bootcamps_router
from app.api.courses import router as courses_router
from app.api.users import router as users_router
from app.services.rate_limit import limit_requests
from app.utils.config import settings
from app.utils.errors import UpstreamUnavailable


logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


async def combined_lifespan(app: FastAPI):
    async with AsyncExitStack() as stack:
        await stack.enter_async_context(mongo_lifespan(app))
        await stack.enter_async_context(redis_lifespan(app))

        yield


app = FastAPI(title="DevCamper API", version="1.0.0", lifespan=combined_lifespan)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return error_response(400, ", ".join(messages))


@app.exception_handler(NotUniqueError)
async def duplicate_key_handler(request: Request, exc: NotUniqueError) -> JSONResponse:
    return error_response(400, "Duplicate field value entered")


@app.exception_handler(DocumentValidationError)
async def document_validation_handler(request: Request, exc: DocumentValidationError) -> JSONResponse:
    if exc.errors:
        return error_response(400, ", ".join(f"{name}: {error.message}" for name, error in exc.errors.items()))
    return error_response(400, exc.message or "Invalid input data")


@app.exception_handler(ConnectionFailure)
async def store_unavailable_handler(request: Request, exc: ConnectionFailure) -> JSONResponse:
    logger.error("Database unreachable: %s", exc)
    return error_response(UpstreamUnavailable.status_code, UpstreamUnavailable.default_message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "Server Error")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


api_dependencies = [Depends(limit_requests())]

app.include_router(auth_router, prefix="/api/v1/auth", dependencies=api_dependencies)
app.include_router(bootcamps_router, prefix="/api/v1/bootcamps", dependencies=api_dependencies)
app.include_router(courses_router, prefix="/api/v1", dependencies=api_dependencies)
app.include_router(users_router, prefix="/api/v1/users", dependencies=api_dependencies)
