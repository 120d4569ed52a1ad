import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from api_keys import router as api_keys_router
from auth import router as auth_router
from clients import router as clients_router
from core import config, db
from core.logging import configure_logging
from core.rate_limit import limiter
from forms import router as forms_router
from stats import router as stats_router
from sync import router as sync_router

configure_logging()
logger = logging.getLogger("main")


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Initialize the DB pool once per process.
    await db.init_pool()
    try:
        yield
    finally:
        await db.close_pool()


app = FastAPI(title="Form Data Collector API", lifespan=lifespan)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Allow the dashboard dev server to call this API from the browser.
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    # Missing/invalid fields are plain 400s for API clients.
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(exc.errors(), exclude={"input", "ctx", "url"})},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error method=%s path=%s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error."})


app.include_router(auth_router.router, tags=["auth"])
app.include_router(clients_router.router, tags=["clients"])
app.include_router(forms_router.router, tags=["forms"])
app.include_router(forms_router.submissions_router, tags=["forms"])
app.include_router(sync_router.router, tags=["sync"])
app.include_router(stats_router.router, tags=["stats"])
app.include_router(api_keys_router.router, tags=["api-keys"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/")
def root() -> dict:
    return {"message": "form-data-collector api"}
