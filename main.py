# main.py
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from authflow import config
from authflow.database import init_db
from authflow.errors import AuthServiceError, InternalError
from authflow.routes import auth

logger = config.configure_logging()

init_db()

app = FastAPI(title="Auth Service")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(auth.router, prefix="/auth", tags=["Authentication"])


def _error(status_code: int, code: str, message: str, headers=None):
    return JSONResponse(status_code=status_code, content={"error": code, "message": message}, headers=headers)


@app.exception_handler(AuthServiceError)
async def auth_service_error_handler(request: Request, exc: AuthServiceError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return _error(exc.status_code, exc.code, exc.message, headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Invalid request"
    return _error(status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", message)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    internal = InternalError()
    return _error(internal.status_code, internal.code, internal.message)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    internal = InternalError()
    return _error(internal.status_code, internal.code, internal.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return _error(exc.status_code, "NOT_FOUND", f"Cannot find {request.url.path} on this server!")
    return _error(exc.status_code, "HTTP_ERROR", str(exc.detail))


@app.get("/", response_class=PlainTextResponse)
async def root():
    return "Hello from server!!"


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
