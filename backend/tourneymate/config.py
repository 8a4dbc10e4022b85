import os


def _canon_prefix(val):
    """
    Normalize API prefix to always be exactly like '/api':
      - defaults to '/api' when unset/empty
      - ensures a single leading slash
      - removes any trailing slash (except for root)
    """
    val = (val or "/api").strip()
    if not val.startswith("/"):
        val = "/" + val
    if len(val) > 1 and val.endswith("/"):
        val = val[:-1]
    return val


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


API_PREFIX = _canon_prefix(os.getenv("API_PREFIX"))

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
REDIS_SOCKET_TIMEOUT = _env_float("REDIS_SOCKET_TIMEOUT", 5.0)

# Budget for a single graph statement, connection handshake included.
GRAPH_TIMEOUT_SECONDS = _env_float("GRAPH_TIMEOUT_SECONDS", 10.0)

SESSION_TTL_SECONDS = _env_int("SESSION_TTL_SECONDS", 3600)

CHAT_RATE_LIMIT_MAX = _env_int("CHAT_RATE_LIMIT_MAX", 5)
CHAT_RATE_LIMIT_WINDOW_SECONDS = _env_int("CHAT_RATE_LIMIT_WINDOW_SECONDS", 10)


def rate_limits_disabled() -> bool:
    return (os.getenv("DISABLE_AUTH_RATE_LIMITS") or "").lower() == "true"


def create_schema_on_startup() -> bool:
    return (os.getenv("GRAPH_CREATE_SCHEMA") or "").lower() == "true"
