"""
Storage account, container and upload operations.

These are thin wrappers over a StorageProvider. Every function takes an
optional `provider`; when it is omitted the provider configured in
settings.STORAGE_PROVIDER is used. Provider errors are never retried.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from django.conf import settings

from .context import StorageContext
from .exceptions import StorageConfigurationError
from .interfaces.storage import StorageProvider
from .storage.factory import get_storage_provider
from .uploads import FileDescriptor, UploadDecider, UploadDecision, find_remote_blob, stat_local_file
from .validation import NameVerdict, validate_account_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountProvisioning:
    """Outcome of create_storage_account."""
    name: str
    verdict: NameVerdict
    available: bool
    created: bool


def _resolve_resource_group(resource_group: Optional[str]) -> str:
    resource_group = resource_group or settings.AZURE_RESOURCE_GROUP
    if not resource_group:
        raise StorageConfigurationError("No resource group given and AZURE_RESOURCE_GROUP is not configured.")
    return resource_group


def check_storage_account(name: str, provider: Optional[StorageProvider] = None) -> bool:
    """Returns True if a storage account called `name` already exists."""
    provider = provider or get_storage_provider()
    exists = provider.exists(name)
    logger.info(f"Storage account {name} {'exists' if exists else 'does not exist'}")
    return exists


def create_storage_account(name: str, resource_group: Optional[str] = None,
                           location: Optional[str] = None,
                           provider: Optional[StorageProvider] = None) -> AccountProvisioning:
    """
    Creates a storage account if its name is valid and still available.

    An invalid name never reaches the provider. The returned
    AccountProvisioning carries the name verdict so callers can see why
    nothing was created.

    Args:
        name: Account name, 3-24 lower-case letters and numbers.
        resource_group: Defaults to settings.AZURE_RESOURCE_GROUP.
        location: Defaults to settings.AZURE_LOCATION.
    """
    verdict = validate_account_name(name)
    if not verdict.valid:
        logger.warning(f"Not creating storage account '{name}': {verdict.message}")
        return AccountProvisioning(name=name, verdict=verdict, available=False, created=False)

    resource_group = _resolve_resource_group(resource_group)
    location = location or settings.AZURE_LOCATION
    provider = provider or get_storage_provider()

    if provider.exists(name):
        logger.warning(f"Not creating storage account {name}: the name is already taken")
        return AccountProvisioning(name=name, verdict=verdict, available=False, created=False)

    provider.create(name, resource_group, location)
    return AccountProvisioning(name=name, verdict=verdict, available=True, created=True)


def delete_storage_account(name: str, resource_group: Optional[str] = None,
                           provider: Optional[StorageProvider] = None) -> None:
    provider = provider or get_storage_provider()
    provider.delete(name, _resolve_resource_group(resource_group))


def get_storage_account_key(name: str, resource_group: Optional[str] = None,
                            provider: Optional[StorageProvider] = None) -> str:
    provider = provider or get_storage_provider()
    return provider.get_key(name, _resolve_resource_group(resource_group))


def get_storage_context(name: str, resource_group: Optional[str] = None,
                        account_key: Optional[str] = None,
                        provider: Optional[StorageProvider] = None) -> StorageContext:
    """
    Builds the StorageContext for an account, fetching its key unless one is given.
    """
    if account_key is None:
        account_key = get_storage_account_key(name, resource_group, provider=provider)
    return StorageContext(
        account_name=name,
        account_key=account_key,
        endpoint_suffix=settings.AZURE_ENDPOINT_SUFFIX,
    )


def container_exists(name: str, context: StorageContext,
                     provider: Optional[StorageProvider] = None) -> bool:
    provider = provider or get_storage_provider()
    return provider.container_exists(name, context)


def create_container(name: str, context: StorageContext,
                     provider: Optional[StorageProvider] = None):
    """
    Creates the container if it does not exist yet and returns the
    provider's handle to it.
    """
    provider = provider or get_storage_provider()
    return provider.create_container(name, context)


def delete_container(name: str, context: StorageContext,
                     provider: Optional[StorageProvider] = None) -> None:
    provider = provider or get_storage_provider()
    provider.delete_container(name, context)


def list_blobs(container: str, context: StorageContext, prefix: Optional[str] = None,
               provider: Optional[StorageProvider] = None) -> List[FileDescriptor]:
    provider = provider or get_storage_provider()
    return provider.list_blobs(container, context, prefix=prefix)


def upload_file_if_changed(local_path: str, container: str, context: StorageContext,
                           blob_name: Optional[str] = None, force: bool = False,
                           timeout: Optional[int] = None,
                           provider: Optional[StorageProvider] = None,
                           decider: Optional[UploadDecider] = None) -> UploadDecision:
    """
    Uploads a local file unless a blob of the same name and size is already there.

    Args:
        local_path: File to upload. Must exist.
        container: Target container.
        context: Account the container belongs to.
        blob_name: Defaults to the file's base name.
        force: Upload even when the blob has the same size.
        timeout: Upload timeout in seconds, defaults to settings.AZURE_UPLOAD_TIMEOUT.

    Raises:
        LocalFileNotFound: Before anything is sent to the provider.
        TransferError: The upload itself failed. Not retried.
    """
    local = stat_local_file(local_path)
    blob_name = blob_name or local.name
    if timeout is None:
        timeout = settings.AZURE_UPLOAD_TIMEOUT

    provider = provider or get_storage_provider()
    decider = decider or UploadDecider()

    remote = find_remote_blob(provider.list_blobs(container, context, prefix=blob_name), blob_name)
    # Compare under the blob's name, the local base name may differ
    decision = decider.decide(FileDescriptor(name=blob_name, size=local.size), remote, force)

    if decision.should_upload:
        provider.upload(local_path, container, blob_name, context, timeout=timeout)
    return decision
