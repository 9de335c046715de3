import os


def _flag(name, default=""):
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


class Config:
    """Base configuration. Shared across all environments."""

    # --- Required ---
    SECRET_KEY = os.environ.get("SECRET_KEY")

    # Handle DATABASE_URL: some PaaS providers (Railway, Heroku) use
    # "postgres://" which SQLAlchemy 1.4+ doesn't accept.
    _db_url = os.environ.get("DATABASE_URL", "")
    if _db_url.startswith("postgres://"):
        _db_url = _db_url.replace("postgres://", "postgresql://", 1)
    SQLALCHEMY_DATABASE_URI = _db_url or None

    # --- Remote store ---
    # "sql": talk to DATABASE_URL directly. "supabase": go through the REST API.
    STORE_BACKEND = os.environ.get("STORE_BACKEND", "sql")
    SUPABASE_URL = os.environ.get("SUPABASE_URL")                # e.g. https://xyz.supabase.co
    SUPABASE_SERVICE_KEY = os.environ.get("SUPABASE_SERVICE_KEY") # service_role key
    SUPABASE_TIMEOUT = float(os.environ.get("SUPABASE_TIMEOUT", 10))

    # --- Store capabilities (resolved once at startup) ---
    # Older databases were created without leads.priority.
    STORE_HAS_PRIORITY = _flag("STORE_HAS_PRIORITY", "true")
    # update_kanban_board_positions() RPC installed in the database.
    STORE_POSITIONS_RPC = _flag("STORE_POSITIONS_RPC")

    # --- API access ---
    # When set, /board/api/* requires "Authorization: Bearer <key>".
    BOARD_API_KEY = os.environ.get("BOARD_API_KEY")

    # --- SQLAlchemy ---
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }

    @staticmethod
    def validate():
        """Fail fast if required env vars are missing."""
        required = ["SECRET_KEY"]
        if os.environ.get("STORE_BACKEND", "sql") == "supabase":
            required += ["SUPABASE_URL", "SUPABASE_SERVICE_KEY"]
        else:
            required.append("DATABASE_URL")
        missing = [v for v in required if not os.environ.get(v)]
        if missing:
            raise RuntimeError(
                f"Missing required environment variables: {', '.join(missing)}"
            )


class DevConfig(Config):
    """Local development."""

    DEBUG = True
    SQLALCHEMY_DATABASE_URI = Config.SQLALCHEMY_DATABASE_URI or "sqlite:///leadboard-dev.db"


class TestConfig(Config):
    """Testing — in-memory SQLite, SQL backend, no API key."""

    TESTING = True
    DEBUG = True
    SECRET_KEY = "test-secret-key-not-for-production"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    STORE_BACKEND = "sql"
    STORE_HAS_PRIORITY = True
    STORE_POSITIONS_RPC = False
    SUPABASE_URL = "https://test.supabase.co"
    SUPABASE_SERVICE_KEY = "service-key-test"
    BOARD_API_KEY = None
    RATELIMIT_ENABLED = False  # disable rate limiting in tests
    SERVER_NAME = "localhost"

    @staticmethod
    def validate():
        """Skip validation in test mode — everything is hardcoded."""
        pass


class ProdConfig(Config):
    """Production."""

    DEBUG = False

    @staticmethod
    def validate():
        """Production also needs the API key; the board API is closed without it."""
        Config.validate()
        if not os.environ.get("BOARD_API_KEY"):
            raise RuntimeError("Missing required environment variables: BOARD_API_KEY")


config_by_name = {
    "development": DevConfig,
    "production": ProdConfig,
    "testing": TestConfig,
}
