"""
UX Audit Platform - Main Application

FastAPI service that gathers site context (sitemap, parsed pages, an
above-the-fold screenshot), asks an LLM for a structured UX audit, and
shares the result as an emailed PDF report.
"""

import logging
import os
import traceback
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from browser_pool import close_browser_pool
from config import is_production, settings
from routes import SERVICE_NAME, VERSION, router

# Load environment variables
load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"🚀 {SERVICE_NAME} starting ({settings.environment})")
    if not settings.OPENROUTER_API_KEY and settings.AI_PROVIDER.lower() == "openrouter":
        logger.error("❌ OPENROUTER_API_KEY is not set, audits will fail")
    yield
    await close_browser_pool()
    logger.info("✅ Shutdown complete")


def cors_origins() -> list:
    if not is_production():
        return ["*"]
    origins = ["http://localhost:3000", "http://localhost:3001"]
    if settings.VERCEL_URL:
        origins.append(f"https://{settings.VERCEL_URL}")
    return origins


# Initialize FastAPI app
app = FastAPI(title=SERVICE_NAME, version=VERSION, lifespan=lifespan)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ======================
# Error handlers
# ======================

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and request.url.path.startswith("/api") and exc.detail == "Not Found":
        return JSONResponse(status_code=404, content={"error": "Endpoint not found"})
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content=exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "message": f"Invalid fields: {', '.join(fields)}"},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"❌ Unhandled error on {request.url.path}: {str(exc)}")
    content = {"error": "Internal server error"}
    if is_production():
        content["message"] = "Something went wrong"
    else:
        content["message"] = str(exc)
        content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=500, content=content)


# Include all API routes
app.include_router(router)


@app.api_route(
    "/api/{rest:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def api_not_found(rest: str):
    raise HTTPException(status_code=404, detail="Not Found")


# ======================
# Frontend (single-page app)
# ======================

@app.get("/{full_path:path}", include_in_schema=False)
async def serve_frontend(full_path: str):
    """Serve built frontend assets, falling back to index.html for client-side routes."""
    static_root = os.path.realpath(settings.STATIC_DIR)
    index_file = os.path.join(static_root, "index.html")
    if not os.path.isfile(index_file):
        raise HTTPException(status_code=404, detail="Frontend not built")

    candidate = os.path.realpath(os.path.join(static_root, full_path))
    if full_path and candidate.startswith(static_root + os.sep) and os.path.isfile(candidate):
        return FileResponse(candidate)
    return FileResponse(index_file)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT, timeout_keep_alive=60)
