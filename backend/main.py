"""
Gradebook — school grading engine
FastAPI backend entry point.
"""

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load environment before the route modules read it.
load_dotenv()

from routes.grading import router as grading_router  # noqa: E402
from routes.reports import router as reports_router  # noqa: E402
from grading.letters import LETTER_SYSTEMS  # noqa: E402
from grading.terms import TERMS  # noqa: E402

SCHOOL_NAME = os.getenv("SCHOOL_NAME", "My School")
CREDIT_PASS_MARK = float(os.getenv("CREDIT_PASS_MARK", "60"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
# Comma-separated allowed origins, e.g. http://localhost:5173,https://app.example.com
raw_origins = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000")
ALLOWED_ORIGINS = [o.strip() for o in raw_origins.split(",") if o.strip()]

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger("gradebook")

app = FastAPI(
    title="Gradebook API",
    description=(
        "Quarter, semester and end-of-year marks, letters, GPA transcripts "
        "and class reports."
    ),
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "error": type(exc).__name__},
    )


app.include_router(grading_router, prefix="/api/grading", tags=["Grading"])
app.include_router(reports_router, prefix="/api/reports", tags=["Reports"])


@app.get("/api/health")
async def health_check():
    return {
        "status": "ok",
        "school_name": SCHOOL_NAME,
    }


@app.get("/api/config")
async def get_config():
    """Return server configuration to the frontend."""
    return {
        "school_name": SCHOOL_NAME,
        "credit_pass_mark": CREDIT_PASS_MARK,
        "terms": [{"value": t.value(), "name": str(t)} for t in TERMS],
        "letter_systems": sorted(LETTER_SYSTEMS),
    }
