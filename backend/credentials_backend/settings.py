"""
Django settings for credentials_backend project.

Base de configuración del servicio de registros académicos:
- DRF + JWT (SimpleJWT)
- CORS Headers
- PostgreSQL vía variables de entorno con fallback a SQLite en desarrollo
- Modelo de usuario personalizado en `users.User`
- Documentos privados fuera de MEDIA_ROOT, servidos sólo con enlaces firmados
"""

from pathlib import Path
import os

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent


# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.getenv(
    "DJANGO_SECRET_KEY",
    "django-insecure-7v!q2m@x#credentials-dev-only-key$0c9r8e1w4k",
)

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.getenv("DJANGO_DEBUG", "true").lower() == "true"

ALLOWED_HOSTS = (
    os.getenv("DJANGO_ALLOWED_HOSTS", "*").split(",")
    if os.getenv("DJANGO_ALLOWED_HOSTS")
    else (["*"] if DEBUG else [])
)


# Application definition

INSTALLED_APPS = [
    # Django core
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    # Third-party
    "rest_framework",
    "corsheaders",
    "django_filters",

    # Local apps
    "users",
    "records",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    # CORS debe ir lo más arriba posible después de SecurityMiddleware
    "corsheaders.middleware.CorsMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "credentials_backend.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "credentials_backend.wsgi.application"


# Database
# PostgreSQL vía variables de entorno; fallback a SQLite para desarrollo local
if os.getenv("POSTGRES_DB"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.getenv("POSTGRES_DB"),
            "USER": os.getenv("POSTGRES_USER", "postgres"),
            "PASSWORD": os.getenv("POSTGRES_PASSWORD", ""),
            "HOST": os.getenv("POSTGRES_HOST", "localhost"),
            "PORT": os.getenv("POSTGRES_PORT", "5432"),
            "CONN_MAX_AGE": 60,
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }


AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.CommonPasswordValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.NumericPasswordValidator",
    },
]


LANGUAGE_CODE = "es-co"

TIME_ZONE = "America/Bogota"

USE_I18N = True

USE_TZ = True


STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

MEDIA_URL = "/media/"
MEDIA_ROOT = BASE_DIR / "media"

# Almacenamiento privado (nunca servido directamente por el servidor web)
PRIVATE_STORAGE_ROOT = Path(os.getenv("PRIVATE_STORAGE_ROOT", str(BASE_DIR / "private")))

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Django REST Framework
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework_simplejwt.authentication.JWTAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": (
        "rest_framework.permissions.IsAuthenticated",
    ),
    "DEFAULT_FILTER_BACKENDS": (
        "django_filters.rest_framework.DjangoFilterBackend",
    ),
    "DEFAULT_THROTTLE_RATES": {
        "public_check_hash": "60/min",
    },
}

# CORS
CORS_ALLOWED_ORIGINS = [
    origin
    for origin in os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")
    if origin.strip()
]

if DEBUG and not CORS_ALLOWED_ORIGINS:
    CORS_ALLOW_ALL_ORIGINS = True

# Usuario personalizado
AUTH_USER_MODEL = "users.User"

# Base pública para construir URLs absolutas (enlaces firmados). Vacío = rutas relativas.
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "")


# Registros académicos
RECORDS_MAX_UPLOAD_BYTES = int(os.getenv("RECORDS_MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
RECORDS_ALLOWED_CONTENT_TYPES = {
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
}
RECORDS_SIGNED_URL_TTL_SECONDS = int(os.getenv("RECORDS_SIGNED_URL_TTL_SECONDS", "3600"))
RECORDS_SIGNED_URL_MAX_TTL_SECONDS = int(os.getenv("RECORDS_SIGNED_URL_MAX_TTL_SECONDS", "86400"))
RECORDS_BLOB_STORE = os.getenv("RECORDS_BLOB_STORE", "records.storage.PrivateStorageBlobStore")
RECORDS_BLOB_STORE_TIMEOUT_SECONDS = float(os.getenv("RECORDS_BLOB_STORE_TIMEOUT_SECONDS", "15"))
RECORDS_PRIVATE_DIR = os.getenv("RECORDS_PRIVATE_DIR", "academic_records")

# Throttle explícito para la consulta pública de huellas (vacío = DEFAULT_THROTTLE_RATES)
PUBLIC_CHECK_HASH_THROTTLE_RATE = os.getenv("PUBLIC_CHECK_HASH_THROTTLE_RATE", "")


LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        "records": {
            "handlers": ["console"],
            "level": os.getenv("RECORDS_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
