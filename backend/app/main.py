"""
Main FastAPI application.

WHY: This is the entry point for the application. It configures middleware,
routes, exception handlers, and other application-level concerns.

Two surfaces share the app:
- /api/...: the portal API, bearer-token auth, CORS limited to TRUSTED_ORIGINS
- /cms/..., /get-schema, /get-object/... and friends: public endpoints
  for customer sites, open CORS, flat error bodies
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.exception_handlers import register_exception_handlers
from app.core.logging import configure_logging
from app.middleware import PublicCORSMiddleware, RequestContextMiddleware, SecurityHeadersMiddleware
from app.api import agenda, auth, cms, extra_costs, files, invoices, organizations, projects, public, quotes
from app.services.scheduler import start_scheduler, shutdown_scheduler, get_scheduler_status
# WHY: Importing the module registers the document tasks on the task queue
from app.services import document_tasks  # noqa: F401


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    WHY: Factory pattern allows easier testing with different configurations
    and makes it possible to create multiple app instances if needed.

    Returns:
        Configured FastAPI application instance
    """
    configure_logging()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Sleads client portal API",
        version=settings.VERSION,
        docs_url=f"{settings.API_V1_PREFIX}/docs",
        redoc_url=f"{settings.API_V1_PREFIX}/redoc",
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    )

    # Register exception handlers
    # WHY: Exception handlers ensure consistent error responses across the API
    # and prevent sensitive data leaks in error messages (OWASP A04)
    register_exception_handlers(app)

    # Configure Request Context Middleware
    # WHY: Assigns the request id that every log line carries.
    app.add_middleware(RequestContextMiddleware)

    # Configure Security Headers
    # WHY: Security headers instruct browsers to enforce additional
    # policies on portal responses (OWASP Top 10 A02, A05).
    app.add_middleware(SecurityHeadersMiddleware, api_prefixes=(settings.API_V1_PREFIX,))

    # Configure CORS
    # WHY: The portal frontend runs on its own origin; only TRUSTED_ORIGINS
    # may call the portal API with credentials.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.TRUSTED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Configure public CORS
    # WHY: Added last so it is outermost; preflights to public paths are
    # answered before the restrictive CORS layer sees them.
    app.add_middleware(PublicCORSMiddleware)

    # Health check endpoint
    # WHY: Load balancers and monitoring tools need a simple endpoint
    # to verify the service is running.
    @app.get("/health", tags=["health"])
    async def health_check() -> dict:
        """
        Health check endpoint.

        WHY: Allows load balancers and monitoring to verify service health
        without checking authentication or database connectivity.
        """
        return {
            "status": "healthy",
            "version": settings.VERSION,
            "scheduler": get_scheduler_status(),
        }

    # Startup/shutdown events for the task queue scheduler
    @app.on_event("startup")
    async def startup_event():
        """
        Application startup event handler.

        WHY: Starts the scheduler that runs queued PDF and email tasks.
        """
        await start_scheduler()

    @app.on_event("shutdown")
    async def shutdown_event():
        """
        Application shutdown event handler.

        WHY: Gracefully stops background jobs to prevent data loss.
        """
        await shutdown_scheduler()

    # Root endpoint
    @app.get("/", tags=["root"])
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "docs": f"{settings.API_V1_PREFIX}/docs",
        }

    # Register API routers
    # WHY: Organizing routes in separate modules improves maintainability
    app.include_router(auth.router, prefix=settings.API_V1_PREFIX)
    app.include_router(organizations.router, prefix=settings.API_V1_PREFIX)
    app.include_router(projects.router, prefix=settings.API_V1_PREFIX)
    app.include_router(files.router, prefix=settings.API_V1_PREFIX)
    app.include_router(cms.router, prefix=settings.API_V1_PREFIX)
    app.include_router(quotes.router, prefix=settings.API_V1_PREFIX)
    app.include_router(invoices.router, prefix=settings.API_V1_PREFIX)
    app.include_router(extra_costs.router, prefix=settings.API_V1_PREFIX)
    app.include_router(agenda.router, prefix=settings.API_V1_PREFIX)
    app.include_router(public.router)

    return app


# Create app instance
# WHY: Creating the app instance here allows it to be imported by uvicorn
# and other modules that need access to the FastAPI app.
app = create_app()


if __name__ == "__main__":
    import uvicorn

    # WHY: This allows running the app directly with `python -m app.main`
    # for development. In production, use `uvicorn app.main:app` directly.
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info" if settings.DEBUG else "warning",
    )
