# backend/storefront_backend/settings/base.py
import os
from pathlib import Path
from datetime import timedelta
from corsheaders.defaults import default_headers, default_methods

BASE_DIR = Path(__file__).resolve().parents[2]


def env_bool(name, default="false"):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-secret")
DEBUG = env_bool("DJANGO_DEBUG", "true")

ALLOWED_HOSTS = [h for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,0.0.0.0").split(",") if h]
CSRF_TRUSTED_ORIGINS = [s.strip() for s in os.getenv("CSRF_TRUSTED_ORIGINS", "").split(",") if s.strip()]

INSTALLED_APPS = [
    "core",
    "identity.apps.IdentityConfig",
    "platformapp.apps.PlatformappConfig",
    "crm.apps.CrmConfig",
    "commerce.apps.CommerceConfig",
    "analyticsapp.apps.AnalyticsappConfig",

    # third-party
    "corsheaders",
    "rest_framework",
    "rest_framework_simplejwt",
    "django_filters",
    "drf_spectacular",

    # contrib
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
]

AUTH_USER_MODEL = "identity.User"

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    # WhiteNoise can be below CORS; it only serves /static
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "core.middleware.RequestIDMiddleware",
    "core.middleware.TimingMiddleware",
    # Put CORS as high as possible
    "corsheaders.middleware.CorsMiddleware",

    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "storefront_backend.urls"

TEMPLATES = [{
    "BACKEND": "django.template.backends.django.DjangoTemplates",
    "DIRS": [],
    "APP_DIRS": True,
    "OPTIONS": {"context_processors": [
        "django.template.context_processors.debug",
        "django.template.context_processors.request",
        "django.contrib.auth.context_processors.auth",
        "django.contrib.messages.context_processors.messages",
    ]},
}]

WSGI_APPLICATION = "storefront_backend.wsgi.application"

# DB
if os.getenv("POSTGRES_HOST"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.getenv("POSTGRES_DB", "storefront"),
            "USER": os.getenv("POSTGRES_USER", "postgres"),
            "PASSWORD": os.getenv("POSTGRES_PASSWORD", ""),
            "HOST": os.getenv("POSTGRES_HOST"),
            "PORT": int(os.getenv("POSTGRES_PORT", "5432")),
            "CONN_MAX_AGE": 60,
        }
    }
else:
    DATABASES = {"default": {"ENGINE": "django.db.backends.sqlite3", "NAME": str(BASE_DIR / "db.sqlite3")}}

# Cache: backs the ingestion throttles, so all web workers must share it
REDIS_URL = os.getenv("REDIS_URL", "")
if REDIS_URL:
    CACHES = {"default": {"BACKEND": "django.core.cache.backends.redis.RedisCache", "LOCATION": REDIS_URL}}
else:
    CACHES = {"default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}}

LANGUAGE_CODE = "en-us"; TIME_ZONE = "UTC"; USE_I18N = True; USE_TZ = True

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Proxies/redirects (storefront routes have no trailing slash)
APPEND_SLASH = False
USE_X_FORWARDED_HOST = True
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

# DRF
REST_FRAMEWORK = {
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.IsAuthenticated"],
    "DEFAULT_AUTHENTICATION_CLASSES": ["rest_framework_simplejwt.authentication.JWTAuthentication"],
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "DEFAULT_FILTER_BACKENDS": ["django_filters.rest_framework.DjangoFilterBackend"],
    "EXCEPTION_HANDLER": "common.exceptions.structured_exception_handler",
    # <scope>_burst / <scope>_sustained, read by common.throttling
    "DEFAULT_THROTTLE_RATES": {
        "events_collect_burst": os.getenv("THROTTLE_COLLECT_BURST", "50/1s"),
        "events_collect_sustained": os.getenv("THROTTLE_COLLECT_SUSTAINED", "200/10s"),
        "cart_track_burst": os.getenv("THROTTLE_TRACK_BURST", "10/1s"),
        "cart_track_sustained": os.getenv("THROTTLE_TRACK_SUSTAINED", "30/10s"),
        "cart_sync_burst": os.getenv("THROTTLE_SYNC_BURST", "5/1s"),
        "cart_sync_sustained": os.getenv("THROTTLE_SYNC_SUSTAINED", "20/10s"),
        "cart_activity_burst": os.getenv("THROTTLE_ACTIVITY_BURST", "5/1s"),
    },
}
if DEBUG:
    REST_FRAMEWORK["DEFAULT_RENDERER_CLASSES"].append("rest_framework.renderers.BrowsableAPIRenderer")

SPECTACULAR_SETTINGS = {
    "TITLE": "Storefront Ingestion API",
    "DESCRIPTION": "Cart reconciliation, behaviour events and activity feeds",
    "VERSION": "0.1.0",
}

# SimpleJWT (operator dashboard)
SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=5),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=1),
    "ALGORITHM": "HS256",
    "SIGNING_KEY": SECRET_KEY,
    "AUTH_HEADER_TYPES": ("Bearer",),
    "AUTH_HEADER_NAME": "HTTP_AUTHORIZATION",
    "USER_ID_FIELD": "id",
    "USER_ID_CLAIM": "user_id",
    "AUTH_TOKEN_CLASSES": ("rest_framework_simplejwt.tokens.AccessToken",),
    "TOKEN_TYPE_CLAIM": "token_type",
}

# Storefront session tokens (issued to shoppers by the storefront login, verified here)
STOREFRONT_TOKEN = {
    "ALGORITHM": os.getenv("STOREFRONT_TOKEN_ALGORITHM", "HS256"),
    "SIGNING_KEY": os.getenv("STOREFRONT_TOKEN_SIGNING_KEY", "") or SECRET_KEY,
    "SUBJECT_CLAIM": os.getenv("STOREFRONT_TOKEN_SUBJECT_CLAIM", "sub"),
    "AUDIENCE": os.getenv("STOREFRONT_TOKEN_AUDIENCE") or None,
    "ISSUER": os.getenv("STOREFRONT_TOKEN_ISSUER") or None,
    "LEEWAY": int(os.getenv("STOREFRONT_TOKEN_LEEWAY", "0")),
}

SESSION_ENGINE = "django.contrib.sessions.backends.db"

# Celery
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", REDIS_URL or "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND") or None
CELERY_TASK_IGNORE_RESULT = CELERY_RESULT_BACKEND is None
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TASK_ACKS_LATE = True
CELERY_TASK_REJECT_ON_WORKER_LOST = True
CELERY_WORKER_PREFETCH_MULTIPLIER = 1
CELERY_WORKER_CONCURRENCY = int(os.getenv("CELERY_WORKER_CONCURRENCY", "4"))
CELERY_TASK_ROUTES = {
    "commerce.reconcile_cart_snapshot": {"queue": "ingest"},
    "analyticsapp.process_event": {"queue": "ingest"},
}
CELERY_TASK_ALWAYS_EAGER = env_bool("CELERY_TASK_ALWAYS_EAGER")

# Ingestion
INGEST_MAX_RETRIES = int(os.getenv("INGEST_MAX_RETRIES", "6"))
INGEST_RETRY_BACKOFF_MAX = int(os.getenv("INGEST_RETRY_BACKOFF_MAX", "300"))
INGEST_LOCK_TIMEOUT_MS = int(os.getenv("INGEST_LOCK_TIMEOUT_MS", "5000"))
INGEST_INLINE_RECONCILE = env_bool("INGEST_INLINE_RECONCILE")
CART_PRICE_MINOR_UNIT_THRESHOLD = int(os.getenv("CART_PRICE_MINOR_UNIT_THRESHOLD", "1000"))
CART_ABANDONED_AFTER_MINUTES = int(os.getenv("CART_ABANDONED_AFTER_MINUTES", "60"))
SLOW_REQUEST_MS = int(os.getenv("SLOW_REQUEST_MS", "1000"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOGGING = {
    "version": 1, "disable_existing_loggers": False,
    "filters": {"request_id": {"()": "core.logging.RequestIDFilter"}},
    "formatters": {
        "default": {"format": "%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s"},
    },
    "handlers": {"console": {"class": "logging.StreamHandler", "filters": ["request_id"], "formatter": "default"}},
    "loggers": {"django": {"handlers": ["console"], "level": "INFO"},
                "django.request": {"handlers": ["console"], "level": "ERROR", "propagate": False},
                "celery": {"handlers": ["console"], "level": "INFO", "propagate": False},
                **{name: {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False}
                   for name in ("common", "core", "platformapp", "identity", "crm", "commerce", "analyticsapp")}},
}

# CORS: the storefront script posts from the shop's own origin
CORS_ALLOW_ALL_ORIGINS = True
CORS_ALLOW_CREDENTIALS = False
CORS_ALLOW_HEADERS = list(default_headers) + ["authorization", "content-type", "accept", "x-tenant-id", "x-request-id"]
CORS_EXPOSE_HEADERS = ["X-Request-ID"]
CORS_ALLOW_METHODS = list(default_methods)
CORS_URLS_REGEX = r"^/.*$"
