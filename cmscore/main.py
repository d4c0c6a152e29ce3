import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cmscore.api.v1 import router as api_v1_router
from cmscore.core.config import settings
from cmscore.core.exceptions import CmsException
from cmscore.core.mongodb import mongodb
from cmscore.middleware.request_logger import RequestLoggerMiddleware
from cmscore.services.content_registry import content_registry

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await mongodb.connect()
    await mongodb.create_indexes(
        content_registry.content_collections(), content_registry.version_collections()
    )

    yield
    # Shutdown
    await mongodb.disconnect()


app = FastAPI(
    title="CMS Content API",
    description="Hierarchical, multi-language, versioned content for pages, blocks and media",
    version="1.0.0",
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware
app.add_middleware(RequestLoggerMiddleware)


@app.exception_handler(CmsException)
async def cms_exception_handler(request: Request, exc: CmsException):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Include API v1 routes
app.include_router(api_v1_router, prefix=settings.api_prefix)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
