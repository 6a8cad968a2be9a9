"""
RxBridge — Production Settings

Hardened configuration for deployment. Activated by:
  DJANGO_SETTINGS_MODULE=config.settings.production

SECRET_KEY and JWT_SIGNING_KEY have no fallback here: a missing value
fails at startup instead of signing with the development key.

@file config/settings/production.py
"""

from .base import *  # noqa: F401, F403

DEBUG = False

SECRET_KEY = env('SECRET_KEY')  # noqa: F405
SIMPLE_JWT['SIGNING_KEY'] = env('JWT_SIGNING_KEY')  # noqa: F405

SECURE_SSL_REDIRECT = env.bool('SECURE_SSL_REDIRECT', default=True)  # noqa: F405
SECURE_HSTS_SECONDS = 31536000
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True

DATABASES['default']['CONN_MAX_AGE'] = env.int('DB_CONN_MAX_AGE', default=600)  # noqa: F405
DATABASES['default']['CONN_HEALTH_CHECKS'] = True  # noqa: F405

REST_FRAMEWORK['DEFAULT_RENDERER_CLASSES'] = (  # noqa: F405
    'core.renderers.StandardJSONRenderer',
)

# Notification delivery de-duplicates, so a redelivered task is harmless.
CELERY_TASK_ALWAYS_EAGER = False
CELERY_TASK_ACKS_LATE = True
CELERY_WORKER_PREFETCH_MULTIPLIER = 1

# Completed and declined transfers are logged at INFO.
LOGGING['loggers']['rxbridge']['level'] = env('RXBRIDGE_LOG_LEVEL', default='INFO')  # noqa: F405
