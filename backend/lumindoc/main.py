from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lumindoc.core.config import settings
from lumindoc.routers import documents, summary


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.name,
        version=settings.version,
        debug=settings.debug,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(
        documents.router,
        prefix=f"{settings.prefix}/documents",
        tags=["documents"],
    )
    app.include_router(
        summary.router,
        prefix=f"{settings.prefix}/summarize",
        tags=["summarize"],
    )

    @app.get("/")
    async def root():
        return {
            "message": f"Welcome to {settings.name}",
            "version": settings.version,
            "docs_url": app.docs_url,
        }

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "version": settings.version,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


app = create_app()
