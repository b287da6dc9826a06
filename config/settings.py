"""
SpaceFlow – Django Settings (Infrastructure Only)
===================================================
Django serves as the HTTP container for the SpaceFlow engine.
The engine owns its state in memory; no models, no migrations.

Operational settings are read from the environment and grouped under
SPACEFLOW.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "spaceflow-dev-key-replace-before-deployment")

DEBUG = os.environ.get("DJANGO_DEBUG", "1") == "1"

ALLOWED_HOSTS = [
    host for host in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",")
    if host
]

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.contenttypes",
]

# ── Middleware ────────────────────────────────────────────────
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
    "adapters.django_api.middleware.ApiVersionMiddleware",
]

# ── URLs ──────────────────────────────────────────────────────
ROOT_URLCONF = "config.urls"

# ── Database ──────────────────────────────────────────────────
# Unused by the engine; Django requires a default entry.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

# ── Request limits ────────────────────────────────────────────
DATA_UPLOAD_MAX_MEMORY_SIZE = 64 * 1024

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# ── SpaceFlow ─────────────────────────────────────────────────

def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    return float(raw) if raw else default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    return int(raw) if raw else default


SPACEFLOW = {
    "OPENAI_MODEL": os.environ.get("OPENAI_MODEL", "gpt-4o-mini"),
    "INTENT_TRANSLATOR_TIMEOUT_S": _env_float("INTENT_TRANSLATOR_TIMEOUT_S", 15.0),
    "INTENT_TRANSLATOR_TEMPERATURE": _env_float("INTENT_TRANSLATOR_TEMPERATURE", 0.1),
    "PALLET_DATASET_PATH": os.environ.get("PALLET_DATASET_PATH") or None,
    "DEMO_PALLET_COUNT": _env_int("DEMO_PALLET_COUNT", 120),
    "SIMULATION_PERIOD_S": _env_float("SIMULATION_PERIOD_S", 2.5),
}

API_VERSION = "1.0"
API_PATH_PREFIX = "/v1/"

# ── Logging ───────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
        },
    },
    "loggers": {
        "spaceflow": {
            "handlers": ["console"],
            "level": os.environ.get("SPACEFLOW_LOG_LEVEL", "INFO"),
            "propagate": True,
        },
    },
}
