import os


def _env_bool(name, default="False"):
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes")


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "change-me")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # PostgreSQL Database URL (required in production)
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # SQLAlchemy Engine Options - connection handle is created once and reused across requests
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 10,              # Max connections in pool per worker
        'pool_recycle': 3600,         # Recycle connections after 1 hour
        'pool_pre_ping': True,        # Verify connections before using (detect stale connections)
        'max_overflow': 5,            # Allow 5 extra connections beyond pool_size
        'pool_timeout': 30,           # Timeout waiting for connection from pool
    }
    AUTO_CREATE_TABLES = _env_bool("AUTO_CREATE_TABLES", "True")

    # Routing
    REDIRECT_PREFIX = os.environ.get("REDIRECT_PREFIX", "/go")
    API_PREFIX = os.environ.get("API_PREFIX", "/api/go")
    DEFAULT_REDIRECT_URL = os.environ.get("DEFAULT_REDIRECT_URL", "/")

    # Precision geolocation (BigDataCloud). Without a key, only edge headers are used.
    BIGDATACLOUD_API_KEY = os.environ.get("BIGDATACLOUD_API_KEY")
    BIGDATACLOUD_API_BASE = os.environ.get("BIGDATACLOUD_API_BASE", "https://api.bigdatacloud.net")
    GEO_TIMEOUT_SECONDS = float(os.environ.get("GEO_TIMEOUT_SECONDS", "0.4"))

    # Privacy
    # - ENCRYPTION_KEY: base64 encoded 32 byte key (AES-256-GCM) for stored Meta tokens
    # - IP_HASH_SALT: secret salt for one-way IP hashing
    ENCRYPTION_KEY = os.environ.get("ENCRYPTION_KEY")
    IP_HASH_SALT = os.environ.get("IP_HASH_SALT")

    # Meta Conversions API
    META_GRAPH_API_BASE = os.environ.get("META_GRAPH_API_BASE", "https://graph.facebook.com")
    META_GRAPH_API_VERSION = os.environ.get("META_GRAPH_API_VERSION", "v18.0")
    META_CAPI_TIMEOUT_SECONDS = float(os.environ.get("META_CAPI_TIMEOUT_SECONDS", "5"))
    META_TEST_EVENT_CODE = os.environ.get("META_TEST_EVENT_CODE")
    DEFAULT_COUNTRY_CODE = os.environ.get("DEFAULT_COUNTRY_CODE", "au")

    # Background work: thread (in-process pool), celery (Redis broker) or inline
    BACKGROUND_BACKEND = os.environ.get("BACKGROUND_BACKEND", "thread")
    BACKGROUND_MAX_WORKERS = int(os.environ.get("BACKGROUND_MAX_WORKERS", "8"))
    REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")

    # Dev only: creates a demo account with two campaigns
    QRTRACK_SEED_DEMO = _env_bool("QRTRACK_SEED_DEMO")


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    AUTO_CREATE_TABLES = True
    QRTRACK_SEED_DEMO = False

    BIGDATACLOUD_API_KEY = "test-geo-key"
    # 32 zero-bytes, base64 encoded
    ENCRYPTION_KEY = "AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA="
    IP_HASH_SALT = "test-salt"
    META_TEST_EVENT_CODE = None

    BACKGROUND_BACKEND = "inline"
    BACKGROUND_MAX_WORKERS = 4
