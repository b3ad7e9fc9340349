import os

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class Settings(BaseModel):
    max_itineraries: int = int(os.getenv("PLACEMATCH_MAX_ITINERARIES", "5"))
    max_videos_per_event: int = int(os.getenv("PLACEMATCH_MAX_VIDEOS_PER_EVENT", "3"))
    experiences_api_url: str = os.getenv("EXPERIENCES_API_URL", "")
    http_timeout_seconds: float = float(os.getenv("PLACEMATCH_HTTP_TIMEOUT", "10.0"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def get_settings() -> Settings:
    return Settings()
