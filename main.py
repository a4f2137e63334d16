from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import os

from storeback.core.config import settings
from storeback.core.exceptions import StoreError, Unauthorized
from storeback.core.security import validate_signing_key
from storeback.database import Base, engine

# import models so they are registered on the metadata
import storeback.models.user  # noqa: F401
import storeback.models.products  # noqa: F401

from storeback.routes.ping import router as ping_router
from storeback.routes.user import router as user_router
from storeback.routes.products import router as products_router

logging.basicConfig(level=settings.log_level)

# Refuse to start without a usable signing key
validate_signing_key(settings.jwt_secret_key)

app = FastAPI(title="StoreBack")

# Create uploads directory if it doesn't exist
os.makedirs(settings.upload_dir, exist_ok=True)

# Mount static files for product images and profile pictures
app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Create tables (after models are imported)
Base.metadata.create_all(bind=engine)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    if exc.status_code >= 500:
        logging.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logging.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.error}: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()), headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logging.info(f"{request.method} {request.url.path} -> invalid request: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "details": jsonable_encoder(exc.errors()),
        },
    )


HTTP_ERROR_CODES = {
    status.HTTP_401_UNAUTHORIZED: "Unauthorized",
    status.HTTP_403_FORBIDDEN: "Forbidden",
    status.HTTP_404_NOT_FOUND: "NotFound",
    status.HTTP_409_CONFLICT: "Conflict",
}


def http_error_code(status_code: int) -> str:
    if status_code >= 500:
        return "InternalError"
    return HTTP_ERROR_CODES.get(status_code, "ValidationError")


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    error = http_error_code(exc.status_code)
    logging.info(f"{request.method} {request.url.path} -> {exc.status_code} {error}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": error, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    # get_db has already rolled the request's session back
    logging.error(f"Database error on {request.method} {request.url.path}: {str(exc)}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "InternalError", "message": "A database error occurred while processing your request"},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logging.error(f"Unexpected error on {request.method} {request.url.path}: {str(exc)}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "InternalError", "message": "An unexpected error occurred"},
    )


app.include_router(ping_router, prefix="/api/ping", tags=["ping"])
app.include_router(user_router, prefix="/api/user", tags=["user"])
app.include_router(products_router, prefix="/api/product", tags=["products"])

@app.get("/")
def read_root():
    return {"status": "ok"}
