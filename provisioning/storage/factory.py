import logging
from typing import Optional
from django.conf import settings
from ..interfaces.storage import StorageProvider
from .azure import AzureStorageProvider
from .local import LocalStorageProvider

logger = logging.getLogger(__name__)

PROVIDERS = {
    'AZURE': AzureStorageProvider,
    'LOCAL': LocalStorageProvider,
}


def get_storage_provider(provider_type: Optional[str] = None) -> StorageProvider:
    """
    Returns the storage backend for account, container and blob operations.

    Args:
        provider_type: 'AZURE' or 'LOCAL' (case-insensitive). Defaults to
            settings.STORAGE_PROVIDER, then LOCAL. Unknown values fall back
            to LOCAL with a warning.
    """
    provider_type = (provider_type or getattr(settings, 'STORAGE_PROVIDER', None) or 'LOCAL').upper()

    provider_cls = PROVIDERS.get(provider_type)
    if provider_cls is None:
        logger.warning(f"Unknown STORAGE_PROVIDER '{provider_type}', falling back to LOCAL.")
        provider_cls = LocalStorageProvider

    logger.info(f"Storage Factory: initializing {provider_cls.__name__}")
    return provider_cls()
