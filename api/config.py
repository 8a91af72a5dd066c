import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

_DEFAULT_SOLAR_PROFILE = Path(__file__).parent / "data" / "mock-8760-solar-profile.json"


class Settings:
    DEBUG: bool = os.getenv("DEBUG", "true").lower() == "true"
    HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", "30"))

    ARC_API_BASE_URL: str = os.getenv("ARC_API_BASE_URL", "https://api.arcadia.com")
    ARC_API_VERSION: str = os.getenv("ARC_API_VERSION", "2021-11-17")
    ARC_API_CLIENT_ID: str = os.getenv("ARC_API_CLIENT_ID", "")
    ARC_API_CLIENT_SECRET: str = os.getenv("ARC_API_CLIENT_SECRET", "")

    GENABILITY_API_BASE_URL: str = os.getenv("GENABILITY_API_BASE_URL", "https://api.genability.com")
    GENABILITY_APPLICATION_ID: str = os.getenv("GENABILITY_APPLICATION_ID", "")
    GENABILITY_APPLICATION_KEY: str = os.getenv("GENABILITY_APPLICATION_KEY", "")

    # Mock production data; if the bill with and without solar come out the
    # same, check that this start is not after the statement's end date.
    SOLAR_PROFILE_PATH: str = os.getenv("SOLAR_PROFILE_PATH", str(_DEFAULT_SOLAR_PROFILE))
    SOLAR_PROFILE_START: str = os.getenv("SOLAR_PROFILE_START", "2022-01-01T00:00:00-07:00")

    CORS_ORIGINS: list[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:8090,http://localhost:3000").split(",")
        if origin.strip()
    ]


settings = Settings()
