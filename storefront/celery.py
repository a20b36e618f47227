import os
from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'storefront.settings')

app = Celery('storefront')

# Read CELERY_* keys from Django settings
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
