import os

from dotenv import dotenv_values

class BaseConfig:
    # Secrets (env in prod; dev/test may use defaults)
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-not-secure")

    # Database (env in prod; dev/test may use default)
    _ENV_FALLBACK = dotenv_values(".env")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL") or _ENV_FALLBACK.get("DATABASE_URL") or "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Logging / misc
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # All JSON routes live below this prefix (dashboard + ingestion clients)
    API_PREFIX = os.getenv("API_PREFIX", "/api/v1")

    # --- Operator bearer tokens (login flow itself is external) ---
    OPERATOR_TOKEN_SALT = os.getenv("OPERATOR_TOKEN_SALT", "operator-token-v1")
    OPERATOR_TOKEN_MAX_AGE = int(os.getenv("OPERATOR_TOKEN_MAX_AGE", str(12 * 60 * 60)))

    # --- Feedback listing ---
    FEEDBACK_DEFAULT_PAGE_SIZE = int(os.getenv("FEEDBACK_DEFAULT_PAGE_SIZE", "20"))
    FEEDBACK_MAX_PAGE_SIZE = int(os.getenv("FEEDBACK_MAX_PAGE_SIZE", "100"))

    # --- Categories ---
    DEFAULT_CATEGORY_COLOR = os.getenv("DEFAULT_CATEGORY_COLOR", "#3b82f6")
    DEFAULT_CATEGORY_ICON = os.getenv("DEFAULT_CATEGORY_ICON", "tag")

    # --- CORS ---
    # Dashboard origins (operator endpoints). Ingestion origins are per application.
    CORS_DASHBOARD_ORIGINS = [
        o.strip() for o in os.getenv("CORS_DASHBOARD_ORIGINS", "").split(",") if o.strip()
    ]

    # Flask-Limiter default: off globally; prefer per-route limits
    RATELIMIT_DEFAULT = None
    PUBLIC_SUBMIT_RATE_LIMIT = os.getenv("PUBLIC_SUBMIT_RATE_LIMIT", "120 per minute")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")
    CORS_DASHBOARD_ORIGINS = BaseConfig.CORS_DASHBOARD_ORIGINS or ["http://localhost:5173"]

class ProductionConfig(BaseConfig):
    DEBUG = False
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "WARNING")
    # REQUIRE env vars in production (fail fast if missing)
    SECRET_KEY = os.environ.get("SECRET_KEY")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL")

class TestingConfig(BaseConfig):
    TESTING = True
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get("TEST_DATABASE_URL", "sqlite:///:memory:")
    RATELIMIT_ENABLED = True

_ENV_MAP = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "staging": ProductionConfig,
    "testing": TestingConfig,
}

def get_config():
    env = os.environ.get("APP_ENV", "development").lower()
    return _ENV_MAP.get(env, DevelopmentConfig)
