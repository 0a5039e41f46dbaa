# config.py
import os

def _csv_env(name: str, default: str = "") -> list[str]:
    val = os.getenv(name, default)
    # split only if non-empty; strip whitespace
    return [x.strip() for x in val.split(",") if x.strip()] if val else []

class BaseConfig:
    DEBUG = False
    TESTING = False
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024  # 10 MB, photos travel inline as base64
    PREFERRED_URL_SCHEME = "https"

    # Secrets (must be set in env for prod)
    SECRET_KEY = os.getenv("APP_SECRET_KEY") or "dev-only-secret-change-me"

    # CORS
    CORS_ORIGINS = _csv_env("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")

    # Record store
    STORE_BACKEND = os.getenv("STORE_BACKEND", "sqlite")
    SQLITE_PATH = os.getenv("SQLITE_PATH", "cv_builder.db")
    MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    MONGO_DB = os.getenv("MONGO_DB", "cv_builder")
    MONGO_COLLECTION = os.getenv("MONGO_COLLECTION", "cvs")

    # Built front end (index.html + assets)
    STATIC_DIR = os.getenv("STATIC_DIR", "dist")

    RATELIMIT_ENABLED = True
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "200 per hour")
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "3000"))

class DevConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

class ProdConfig(BaseConfig):
    pass

class TestConfig(BaseConfig):
    TESTING = True
    RATELIMIT_ENABLED = False
    SQLITE_PATH = ":memory:"
    STATIC_DIR = ""

def get_config_class():
    return ProdConfig if os.getenv("ENV") == "prod" else DevConfig

def validate_required_secrets():
    if os.getenv("ENV") == "prod":
        if not os.getenv("APP_SECRET_KEY"):
            raise RuntimeError("APP_SECRET_KEY must be set in production")
