#backend/app/main.py

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from backend.app.api.routes import api_router
from backend.app.config import settings
from backend.app.core.log import configure_logging


class ResumeScreenerApp:
    def __init__(self):
        configure_logging()
        self.app = FastAPI(
            title="Resume Screener API",
            description="Batch screening of resume PDFs against a job description: extraction, "
                        "resume gating, weighted skill-match scoring and ranked reports.",
            version="0.3.0"
        )
        self._configure_cors()
        self.include_routers()

    def _configure_cors(self):
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins(),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def include_routers(self):
        self.app.include_router(api_router)


def get_app():
    """Entrypoint for ASGI"""
    return ResumeScreenerApp().app


# Run with 'uvicorn backend.app.main:app'
app = get_app()
