"""
FastAPI application factory
"""

import math
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from sitepipe import __version__
from sitepipe.services.deployment_orchestrator import DeploymentOrchestrator
from sitepipe.services.exceptions import OrchestratorError, RateLimitError
from sitepipe.utils.logger import get_logger
from sitepipe.web.routes import router

logger = get_logger(__name__)


def create_app(orchestrator: Optional[DeploymentOrchestrator] = None) -> FastAPI:
    """
    Build the HTTP application.

    Args:
        orchestrator: Pipeline to serve. Defaults to one built from settings.
    """
    app = FastAPI(title="sitepipe", version=__version__)
    app.state.orchestrator = orchestrator or DeploymentOrchestrator()

    @app.exception_handler(OrchestratorError)
    async def orchestrator_error_handler(request: Request, exc: OrchestratorError) -> JSONResponse:
        if exc.http_status >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")

        headers = {}
        if isinstance(exc, RateLimitError) and exc.retry_after:
            headers["Retry-After"] = str(math.ceil(exc.retry_after))

        return JSONResponse(status_code=exc.http_status, content=exc.to_response(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = ", ".join(".".join(str(p) for p in err["loc"][1:]) for err in exc.errors())
        return JSONResponse(
            status_code=400,
            content={"error": "validation_failed", "message": f"Invalid request fields: {fields}"},
        )

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
        content = exc.detail if isinstance(exc.detail, dict) else {"error": "http_error", "message": str(exc.detail)}
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.get("/health")
    def health():
        return {"status": "ok", "version": __version__}

    app.include_router(router)

    return app
