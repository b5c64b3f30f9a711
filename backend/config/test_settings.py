"""
Settings used by the test suite.
"""

from .settings import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'linkboard-tests',
    }
}

CHANNEL_LAYERS = {
    'default': {
        'BACKEND': 'channels.layers.InMemoryChannelLayer',
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

PASSWORD_HASH_ROUNDS = 4
INVITATION_REQUIRED = False

# Effectively disables the per-request limiter
RATE_LIMIT_MAX_REQUESTS = 10000
RATE_LIMIT_STRICT_MAX_REQUESTS = 10000

SESSION_COOKIE_SECURE = False
CSRF_COOKIE_SECURE = False

LOGGING['root']['level'] = 'WARNING'  # noqa: F405
