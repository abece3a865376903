import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lessonplan.api import plan_router
from lessonplan.database import create_engine_for, create_session_maker, create_tables
from lessonplan.extraction import PlanExtractor
from lessonplan.persistence import DocumentStore, InMemoryDocumentStore, SqlDocumentStore
from lessonplan.session import Extractor, PlanSession
from lessonplan.settings import settings

logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger(__name__)


def create_app(
    store: Optional[DocumentStore] = None,
    extractor: Optional[Extractor] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        store: Plan store to use; by default a SQL store when DATABASE_URL is
            set, otherwise an in-memory one
        extractor: Extraction collaborator; by default the Gemini PlanExtractor
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler - runs on startup/shutdown."""
        engine = None
        plan_store = store
        
        # Startup: pick the plan store
        if plan_store is None:
            if settings.DATABASE_URL:
                logger.info("Initializing database...")
                engine = create_engine_for(settings.DATABASE_URL, echo=settings.DEBUG)
                await create_tables(engine)
                plan_store = SqlDocumentStore(create_session_maker(engine))
            else:
                logger.warning("DATABASE_URL not set - using in-memory plan store (state lost on restart)")
                plan_store = InMemoryDocumentStore()
        
        # Load the current plan (or defaults) into the editing session
        app.state.plan_session = await PlanSession.open(
            plan_store,
            extractor=extractor or PlanExtractor(),
        )
        
        yield
        
        # Shutdown: write pending saves before the store goes away
        await app.state.plan_session.flush()
        if engine is not None:
            await engine.dispose()
        logger.info("Shutting down...")

    app = FastAPI(title="Teaching Plan API", lifespan=lifespan)

    # Allow CORS for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(plan_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "database": bool(settings.DATABASE_URL)}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
