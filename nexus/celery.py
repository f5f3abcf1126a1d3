"""
Configuração do Celery para as rotinas de billing.

Usa Redis como message broker. O agendamento (beat) fica em
CELERY_BEAT_SCHEDULE no settings.

Uso:
    celery -A nexus worker --loglevel=info
    celery -A nexus beat --loglevel=info
"""

import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'nexus.settings')

app = Celery('nexus')

# Namespace 'CELERY': todas as configurações começam com CELERY_
app.config_from_object('django.conf:settings', namespace='CELERY')

app.autodiscover_tasks()
