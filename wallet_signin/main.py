from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Callable, Optional
import logging
import time

from .config import Settings, get_settings
from .routers import auth
from .services.auth_service import AuthService

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings):
    logging.basicConfig(level=settings.log_level, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')


def create_app(settings: Optional[Settings] = None, clock: Callable[[], float] = time.time) -> FastAPI:
    """Builds the application around one explicit Settings object."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Wallet Sign-In Backend",
        description="Challenge-response wallet authentication issuing short-lived cookie sessions.",
        version="0.1.0"
    )
    app.state.settings = settings
    app.state.auth_service = AuthService(settings, clock=clock)

    # --- CORS Configuration ---
    # Credentials must be allowed for the session cookie to cross origins.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Error handling: every failure leaves as a JSON {error} body ---
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "invalid request body"})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": "server error"})

    app.include_router(auth.router)

    @app.get("/", tags=["Health Check"])
    def read_root():
        """Root endpoint for health check."""
        return {"status": "ok", "message": "Wallet sign-in backend is running."}

    return app


app = create_app()


# --- Server Startup (for local development) ---
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("wallet_signin.main:app", host="0.0.0.0", port=8000, reload=True)
