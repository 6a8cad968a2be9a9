"""
RxBridge — Test Settings

SQLite and in-process Celery by default. The SQLite test database lives in
a file and opens every transaction with BEGIN IMMEDIATE, so the threaded
concurrency tests get one writer at a time across connections. Point
DATABASE_URL at PostgreSQL to run them against real row locks instead.

@file config/settings/test.py
"""

import os
import tempfile

from .base import *  # noqa: F401, F403

DEBUG = False

DATABASES = {
    'default': env.db('DATABASE_URL', default='sqlite:///:memory:'),  # noqa: F405
}
if DATABASES['default']['ENGINE'] == 'django.db.backends.sqlite3':
    DATABASES['default']['OPTIONS'] = {
        'transaction_mode': 'IMMEDIATE',
        'timeout': 30,
    }
    DATABASES['default']['TEST'] = {
        'NAME': env(  # noqa: F405
            'TEST_SQLITE_PATH',
            default=os.path.join(tempfile.gettempdir(), 'rxbridge-test.sqlite3'),
        ),
    }

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = None

REST_FRAMEWORK['DEFAULT_THROTTLE_CLASSES'] = []  # noqa: F405
REST_FRAMEWORK['DEFAULT_RENDERER_CLASSES'] = (  # noqa: F405
    'core.renderers.StandardJSONRenderer',
)

REDISTRIBUTION_RETRY_BASE_DELAY = 0

LOGGING['loggers']['rxbridge']['level'] = 'WARNING'  # noqa: F405
