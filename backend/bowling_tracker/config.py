import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_GAME_TTL_SECONDS = 6 * 60 * 60


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


def _parse_origins(raw):
    """Split a comma-separated origin list; wildcards are refused."""
    origins = [o.strip() for o in (raw or "").split(",") if o.strip()]
    if "*" in origins:
        raise ValueError(
            "ALLOWED_ORIGINS cannot include '*' (wildcard). Specify explicit, trusted origins."
        )
    return origins


def _parse_number(name, raw, default, *, positive=False):
    """Read a numeric env value; bad or out-of-range input falls back to ``default``."""
    if raw is None or not raw.strip():
        return float(default)
    try:
        value = float(raw)
    except ValueError:
        logger.warning("%s is not a valid number (got %r); defaulting to %s", name, raw, default)
        return float(default)
    if value < 0 or (positive and value == 0):
        logger.warning(
            "%s must be %s; defaulting to %s",
            name,
            "positive" if positive else "non-negative",
            default,
        )
        return float(default)
    return value


API_PREFIX = _canon_prefix(os.getenv("API_PREFIX"))

ALLOWED_ORIGINS = _parse_origins(os.getenv("ALLOWED_ORIGINS"))
ALLOW_CREDENTIALS = os.getenv("ALLOW_CREDENTIALS", "true").lower() == "true"

# Idle games are dropped from the in-memory store after this many seconds.
GAME_TTL_SECONDS = _parse_number(
    "GAME_TTL_SECONDS",
    os.getenv("GAME_TTL_SECONDS"),
    DEFAULT_GAME_TTL_SECONDS,
    positive=True,
)

SENTRY_DSN = os.getenv("SENTRY_DSN")
SENTRY_ENVIRONMENT = (os.getenv("SENTRY_ENVIRONMENT") or "").strip() or None
SENTRY_TRACES_SAMPLE_RATE = _parse_number(
    "SENTRY_TRACES_SAMPLE_RATE", os.getenv("SENTRY_TRACES_SAMPLE_RATE"), 0.0
)
SENTRY_PROFILES_SAMPLE_RATE = _parse_number(
    "SENTRY_PROFILES_SAMPLE_RATE", os.getenv("SENTRY_PROFILES_SAMPLE_RATE"), 0.0
)
