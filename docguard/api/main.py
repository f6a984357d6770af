from fastapi import FastAPI

from docguard import __version__
from docguard.api.routers import comments, documents
from docguard.common.logger import setup_logger
from docguard.core.config import get_settings

settings = get_settings()

setup_logger(
    "docguard",
    log_dir=settings.log_dir,
    level=settings.log_level,
    file_logging=settings.log_to_file,
)

app = FastAPI(
    title=settings.app_name,
    description="Multi-tenant document authorization and audit core",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Include routers
app.include_router(documents.router, prefix="/api")
app.include_router(comments.router, prefix="/api")


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": __version__}
