"""Django settings for the SST heatmap service.

Values come from environment variables; HEATMAP_* entries describe the
fixed grid layout and rendering defaults and are validated at request time
by `heatmap.conf.load_heatmap_settings`.
"""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str = "") -> list[str]:
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-only-not-for-prod")
DEBUG = _env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = _env_list(
    "DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver"
)

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "django.contrib.staticfiles",
    "django_prometheus",
    "corsheaders",
    "rest_framework",
    "drf_spectacular",
    "heatmap",
]

MIDDLEWARE = [
    "django_prometheus.middleware.PrometheusBeforeMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "django_prometheus.middleware.PrometheusAfterMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"
ASGI_APPLICATION = "config.asgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get(
            "DJANGO_SQLITE_PATH", str(BASE_DIR / "db.sqlite3")
        ),
    }
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Uploads larger than this spill to disk instead of memory.
FILE_UPLOAD_MAX_MEMORY_SIZE = int(
    os.environ.get("DJANGO_FILE_UPLOAD_MAX_MEMORY_SIZE", 10 * 1024 * 1024)
)
DATA_UPLOAD_MAX_MEMORY_SIZE = int(
    os.environ.get("DJANGO_DATA_UPLOAD_MAX_MEMORY_SIZE", 10 * 1024 * 1024)
)

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.AllowAny",
    ],
    "UNAUTHENTICATED_USER": None,
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "EXCEPTION_HANDLER": "config.api.exceptions.custom_exception_handler",
}

SPECTACULAR_SETTINGS = {
    "TITLE": "SST Heatmap API",
    "DESCRIPTION": (
        "Render sea-surface-temperature heatmaps from a base map and a "
        "packed sample grid."
    ),
    "VERSION": "0.1.0",
    "SERVE_INCLUDE_SCHEMA": False,
}

# The upload form may be served from another origin.
_CORS_ORIGINS = _env_list("HEATMAP_CORS_ALLOWED_ORIGINS", "*")
CORS_ALLOW_ALL_ORIGINS = "*" in _CORS_ORIGINS
CORS_ALLOWED_ORIGINS = [o for o in _CORS_ORIGINS if o != "*"]
CORS_ALLOW_METHODS = ("GET", "OPTIONS", "POST")
CORS_EXPOSE_HEADERS = (
    "X-Heatmap-Range-Min",
    "X-Heatmap-Range-Max",
    "X-Heatmap-Skipped-Pixels",
)

HEATMAP_GRID_WIDTH = int(os.environ.get("HEATMAP_GRID_WIDTH", 36000))
HEATMAP_GRID_HEIGHT = int(os.environ.get("HEATMAP_GRID_HEIGHT", 17999))
HEATMAP_GRID_DTYPE = os.environ.get("HEATMAP_GRID_DTYPE", "int16")
HEATMAP_GRID_BYTE_ORDER = os.environ.get("HEATMAP_GRID_BYTE_ORDER", "little")
HEATMAP_GRID_HEADER_BYTES = os.environ.get("HEATMAP_GRID_HEADER_BYTES", "0")
HEATMAP_GRID_SENTINEL = os.environ.get("HEATMAP_GRID_SENTINEL", "-999")
HEATMAP_GRID_VALID_MIN = os.environ.get("HEATMAP_GRID_VALID_MIN")
HEATMAP_GRID_VALID_MAX = os.environ.get("HEATMAP_GRID_VALID_MAX")
HEATMAP_GRID_SUFFIX = os.environ.get("HEATMAP_GRID_SUFFIX", ".grid")
HEATMAP_RANGE_EXCLUDES_NO_DATA = _env_bool(
    "HEATMAP_RANGE_EXCLUDES_NO_DATA", True
)

HEATMAP_COLOR_POLICY = os.environ.get("HEATMAP_COLOR_POLICY", "threshold")
HEATMAP_THRESHOLD_BREAKPOINTS = (32, 60)
HEATMAP_THRESHOLD_COLORS = ((0, 0, 255), (0, 255, 0), (255, 0, 0))
HEATMAP_NO_DATA_COLOR = (0, 0, 0)

HEATMAP_COMPOSITE_MODE = os.environ.get("HEATMAP_COMPOSITE_MODE", "full")
HEATMAP_OUTPUT_WIDTH = os.environ.get("HEATMAP_OUTPUT_WIDTH")
HEATMAP_OUTPUT_HEIGHT = os.environ.get("HEATMAP_OUTPUT_HEIGHT")
HEATMAP_MAX_OUTPUT_PIXELS = int(
    os.environ.get("HEATMAP_MAX_OUTPUT_PIXELS", 36000 * 17999)
)
HEATMAP_MAX_IMAGE_PIXELS = int(
    os.environ.get("HEATMAP_MAX_IMAGE_PIXELS", 36000 * 17999)
)
HEATMAP_PNG_COMPRESS_LEVEL = os.environ.get("HEATMAP_PNG_COMPRESS_LEVEL", "6")
HEATMAP_WORK_DIR = os.environ.get("HEATMAP_WORK_DIR")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": os.environ.get("DJANGO_LOG_LEVEL", "INFO"),
    },
    "loggers": {
        "heatmap": {
            "level": os.environ.get("HEATMAP_LOG_LEVEL", "INFO"),
            "propagate": True,
        },
    },
}
