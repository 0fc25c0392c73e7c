import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Settings:
    # Application
    app_name: str = os.getenv("APP_NAME", "Library Lending System")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    library_name: str = os.getenv("LIBRARY_NAME", "Bibliothèque Centrale")
    debug: bool = _env_flag("DEBUG", "False")
    environment: str = os.getenv("ENVIRONMENT", "development")

    # API
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "8080"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Startup
    seed_demo_data: bool = _env_flag("SEED_DEMO_DATA", "True")


settings = Settings()
