"""
FastAPI entrypoint for the Tripsettle backend application.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from tripsettle import __version__
from tripsettle.core.config import settings
from tripsettle.core.errors import register_exception_handlers
from tripsettle.core.logging import init_logging, request_context_middleware
from tripsettle.api.router import api_router


def create_app() -> FastAPI:
    """Application factory."""
    init_logging(debug=settings.DEBUG, json_output=settings.LOG_JSON)

    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Shared travel expense balances and settlements",
        version=__version__
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(request_context_middleware)

    register_exception_handlers(app)

    # Include API routes
    app.include_router(api_router, prefix="/api")

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"message": f"{settings.APP_NAME} API is running"}

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
