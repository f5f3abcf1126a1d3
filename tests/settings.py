"""
Configurações usadas pela suíte de testes.

Banco sqlite em memória, cache local e Celery síncrono: os testes não
dependem de PostgreSQL nem de Redis.
"""

from nexus.settings import *  # noqa: F401,F403

SECRET_KEY = 'gestor-nexus-tests'

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
        'LOCATION': 'gestor-nexus-tests',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

OPENAI_API_KEY = ''

ASAAS_WEBHOOK_TOKEN = 'asaas-test-token'
ABACATEPAY_WEBHOOK_SECRET = 'abacatepay-test-secret'

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'null': {'class': 'logging.NullHandler'},
    },
    'loggers': {
        'gestor': {'handlers': ['null'], 'level': 'WARNING', 'propagate': False},
    },
}
