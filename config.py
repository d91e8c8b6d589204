import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./authsentinel.db")
    DB_AUTO_CREATE = data.get("DB_AUTO_CREATE", True)
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")
    APP_BASE_URL = data.get("APP_BASE_URL", "http://localhost:8000")

    # Credentials
    BCRYPT_ROUNDS = int(data.get("BCRYPT_ROUNDS", 12))
    PASSWORD_MIN_LENGTH = int(data.get("PASSWORD_MIN_LENGTH", 8))
    EMAIL_VERIFICATION_TTL_HOURS = int(data.get("EMAIL_VERIFICATION_TTL_HOURS", 24))

    # Sessions and stateless tokens
    SESSION_LIFETIME_DAYS = int(data.get("SESSION_LIFETIME_DAYS", 30))
    SESSION_CHECK_INTERVAL_SECONDS = int(data.get("SESSION_CHECK_INTERVAL_SECONDS", 60))

    # Client context / geolocation
    TRUSTED_IP_HEADER = data.get("TRUSTED_IP_HEADER", "cf-connecting-ip")
    GEOLOCATION_URL = data.get("GEOLOCATION_URL", "http://ip-api.com/json")
    GEOLOCATION_TIMEOUT_SECONDS = float(data.get("GEOLOCATION_TIMEOUT_SECONDS", 3.0))
    GEOLOCATION_CACHE_TTL_SECONDS = int(data.get("GEOLOCATION_CACHE_TTL_SECONDS", 86400))
    GEOLOCATION_CACHE_SIZE = int(data.get("GEOLOCATION_CACHE_SIZE", 10_000))
    GEOLOCATION_RATE_LIMIT_PER_MINUTE = int(
        data.get("GEOLOCATION_RATE_LIMIT_PER_MINUTE", 45)
    )

    # Anomaly detection
    BURST_FAILURE_THRESHOLD = int(data.get("BURST_FAILURE_THRESHOLD", 3))
    BURST_FAILURE_WINDOW_MINUTES = int(data.get("BURST_FAILURE_WINDOW_MINUTES", 15))

    # Notifications
    NOTIFICATION_BACKEND = data.get("NOTIFICATION_BACKEND", "log")
    RESEND_API_URL = data.get("RESEND_API_URL", "https://api.resend.com/emails")
    RESEND_API_KEY = data.get("RESEND_API_KEY", "")
    RESEND_FROM_EMAIL = data.get("RESEND_FROM_EMAIL", "security@authsentinel.local")
    NOTIFICATION_TIMEOUT_SECONDS = float(data.get("NOTIFICATION_TIMEOUT_SECONDS", 10.0))
