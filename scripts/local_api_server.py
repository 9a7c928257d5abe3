"""
FastAPI Server for Local Development

Serves the submission-created webhook at the same path the hosting platform
uses so form submissions can be replayed locally. Requests are turned into
function events and passed to the lambda handler in-process.
"""

import os
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set environment for local mode BEFORE any other imports
os.environ.setdefault("NOTIFIER_ENVIRONMENT", "development")
os.environ.setdefault("NOTIFIER_BACKUP_DETACHED", "false")

import structlog

# Configure logging
structlog.configure(
    processors=[
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

log = structlog.get_logger()

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse

from lambdas.submission_created.handler import lambda_handler
from notifier.config import get_settings

get_settings.cache_clear()

app = FastAPI(
    title="Submission Notifier",
    description="Local development server for the submission-created webhook",
)


# =====================================================
# API Endpoints
# =====================================================


@app.get("/")
async def root():
    """Health check endpoint."""
    settings = get_settings()
    return {
        "status": "ok",
        "environment": settings.environment,
        "provider": settings.email_provider,
        "missing_settings": settings.missing_delivery_settings(),
    }


@app.post("/.netlify/functions/submission-created")
async def submission_created(request: Request):
    """
    Run the webhook handler for one request.

    The handler starts its own event loop for attachment downloads, so it
    runs in a worker thread.
    """
    body = await request.body()
    event = {
        "httpMethod": request.method,
        "path": request.url.path,
        "headers": dict(request.headers),
        "body": body.decode("utf-8", errors="replace"),
        "isBase64Encoded": False,
    }
    response = await run_in_threadpool(lambda_handler, event, None)
    log.info("local_submission_handled", status_code=response["statusCode"])
    return PlainTextResponse(
        content=response["body"],
        status_code=response["statusCode"],
    )


if __name__ == "__main__":
    import uvicorn

    log.info("starting_local_api_server", host="0.0.0.0", port=8000)
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
