"""
Django settings for the azstore project.

Storage configuration is read from environment variables so the same
settings module works locally (LOCAL provider) and against Azure.
"""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'django-insecure-azstore-local-development-key')

DEBUG = os.getenv('DJANGO_DEBUG', 'False').lower() in ('1', 'true', 'yes')

ALLOWED_HOSTS = []

INSTALLED_APPS = [
    'provisioning.apps.ProvisioningConfig',
]

# The app holds no database models.
DATABASES = {}

USE_TZ = True

# --- Storage Configuration ---
# LOCAL or AZURE
STORAGE_PROVIDER = os.getenv('STORAGE_PROVIDER', 'LOCAL')

LOCAL_STORAGE_ROOT = os.getenv('LOCAL_STORAGE_ROOT', os.path.join(BASE_DIR, 'media'))

# --- Azure Configuration ---
AZURE_SUBSCRIPTION_ID = os.getenv('AZURE_SUBSCRIPTION_ID')
AZURE_TENANT_ID = os.getenv('AZURE_TENANT_ID')
AZURE_CLIENT_ID = os.getenv('AZURE_CLIENT_ID')
AZURE_CLIENT_SECRET = os.getenv('AZURE_CLIENT_SECRET')
AZURE_USERNAME = os.getenv('AZURE_USERNAME')
AZURE_PASSWORD = os.getenv('AZURE_PASSWORD')

AZURE_RESOURCE_GROUP = os.getenv('AZURE_RESOURCE_GROUP')
AZURE_LOCATION = os.getenv('AZURE_LOCATION', 'westeurope')
AZURE_STORAGE_SKU = os.getenv('AZURE_STORAGE_SKU', 'Standard_LRS')
AZURE_ENDPOINT_SUFFIX = os.getenv('AZURE_ENDPOINT_SUFFIX', 'core.windows.net')

# Seconds allowed for a single blob upload
AZURE_UPLOAD_TIMEOUT = int(os.getenv('AZURE_UPLOAD_TIMEOUT', 600))

# --- Logging ---
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
        },
    },
    'loggers': {
        'provisioning': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
        },
        # The Azure SDK logs every HTTP request at INFO
        'azure': {
            'handlers': ['console'],
            'level': 'WARNING',
        },
    },
}
