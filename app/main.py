from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .election.routes import api_router
from .election_auth.routes import auth_router

from app.election.exceptions import ElectionError, ValidationError
from app.election.session_controller import session_controller
from app.logger import logger
from app.middleware import register_middlewares


@asynccontextmanager
async def lifespan(app: FastAPI):
    # A session left in progress by a previous process keeps counting down
    await session_controller.resume()
    yield
    await session_controller.shutdown()


app = FastAPI(lifespan=lifespan)

app.logger = logger

register_middlewares(app)


def error_response(error: ElectionError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content={"detail": error.message, "error": error.kind},
    )


@app.exception_handler(ElectionError)
async def election_error_handler(request: Request, error: ElectionError):
    if error.status_code >= 500:
        app.logger.error("%s %s failed: %s" % (request.method, request.url.path, error))
    else:
        app.logger.info("%s %s rejected: %s" % (request.method, request.url.path, error))
    return error_response(error)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, error: RequestValidationError):
    first = error.errors()[0] if error.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"Invalid value for {field}" if field else ValidationError.default_message
    return error_response(ValidationError(message))


# Routes
app.include_router(api_router)
app.include_router(auth_router)
