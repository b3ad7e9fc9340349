import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from placematch.api.routers.recommendations import router as recommendations_router
from placematch.core.experience_source import ExperienceSource, HttpExperienceSource
from placematch.core.recommendation_service import RecommendationService
from placematch.core.settings import Settings, get_settings

load_dotenv()


def create_app(
    settings: Settings | None = None, source: ExperienceSource | None = None
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    application = FastAPI(title="Placematch")

    # CORS: local frontends by default
    allowed_origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Extra origins, comma separated
    extra_origins = os.getenv("ALLOWED_ORIGINS", "")
    if extra_origins:
        allowed_origins.extend(
            [origin.strip() for origin in extra_origins.split(",") if origin.strip()]
        )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # Without EXPERIENCES_API_URL only POST /recommendations is usable
    if source is None and settings.experiences_api_url:
        source = HttpExperienceSource(
            settings.experiences_api_url, timeout=settings.http_timeout_seconds
        )
    application.state.experience_source = source
    application.state.service = RecommendationService(settings=settings, source=source)

    @application.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    application.include_router(recommendations_router)
    return application


app = create_app()
