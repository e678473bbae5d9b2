from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from genie.core.config import settings
from genie.core.database import init_db
from genie.core.environment import validate_on_startup
from genie.api.v1.api import api_router
from genie.core.middleware import exception_handler
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # a bad estimation calibration stops the application here
    validate_on_startup(settings)
    init_db()
    yield


app = FastAPI(
    title="Project Genie RAB API",
    description="API for requirement analysis and Use Case Point cost estimation (RAB)",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Store environment in app state
app.state.ENVIRONMENT = settings.ENVIRONMENT

# Add exception handler middleware
app.middleware("http")(exception_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger = logging.getLogger(__name__)
    logger.error(f"Validation error on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors())}
    )


# Include API router
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
async def root():
    return {"message": "Project Genie RAB API", "version": "1.0.0"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
