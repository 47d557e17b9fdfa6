import logging
from typing import List, Optional
from django.conf import settings
from azure.identity import ClientSecretCredential, DefaultAzureCredential, UsernamePasswordCredential
from azure.mgmt.storage import StorageManagementClient
from azure.mgmt.storage.models import Kind, Sku, StorageAccountCheckNameAvailabilityParameters, StorageAccountCreateParameters
from azure.storage.blob import BlobServiceClient
from azure.core.exceptions import AzureError, ClientAuthenticationError, ResourceExistsError, ResourceNotFoundError
from ..context import StorageContext
from ..exceptions import (
    ContainerNotFound,
    LocalFileNotFound,
    StorageAccountNotFound,
    StorageAuthenticationError,
    StorageConfigurationError,
    TransferError,
)
from ..interfaces.storage import StorageProvider
from ..uploads import FileDescriptor

logger = logging.getLogger(__name__)


def build_credential():
    """
    Picks the Azure credential from settings: username/password when both are
    configured, then a service principal secret, then DefaultAzureCredential.
    """
    tenant_id = settings.AZURE_TENANT_ID
    client_id = settings.AZURE_CLIENT_ID

    if settings.AZURE_USERNAME and settings.AZURE_PASSWORD:
        logger.info("Using Azure username/password credential")
        return UsernamePasswordCredential(
            tenant_id=tenant_id,
            client_id=client_id,
            username=settings.AZURE_USERNAME,
            password=settings.AZURE_PASSWORD
        )
    if tenant_id and client_id and settings.AZURE_CLIENT_SECRET:
        logger.info("Using Azure service principal credential")
        return ClientSecretCredential(
            tenant_id=tenant_id,
            client_id=client_id,
            client_secret=settings.AZURE_CLIENT_SECRET
        )
    logger.info("Using DefaultAzureCredential")
    return DefaultAzureCredential()


class AzureStorageProvider(StorageProvider):
    """
    Storage provider implementation for Azure.
    Account management goes through the Storage Resource Provider
    (azure-mgmt-storage); containers and blobs through the account key
    held by a StorageContext.
    """

    def __init__(self, credential=None, management_client=None):
        self.subscription_id = settings.AZURE_SUBSCRIPTION_ID
        self.sku_name = settings.AZURE_STORAGE_SKU

        if management_client is not None:
            self.storage_client = management_client
            return

        if not self.subscription_id:
            raise StorageConfigurationError("AZURE_SUBSCRIPTION_ID is not configured.")

        logger.info("Initializing AzureStorageProvider...")
        # The credential is only exercised on the first management call
        try:
            self.storage_client = StorageManagementClient(
                credential=credential or build_credential(),
                subscription_id=self.subscription_id
            )
            logger.info("Azure management client initialized.")
        except Exception as e:
            logger.error(f"Azure Initialization Error: {e}")
            raise

    def _blob_service(self, context: StorageContext) -> BlobServiceClient:
        return BlobServiceClient.from_connection_string(context.connection_string)

    # --- Storage accounts ---

    def exists(self, name: str) -> bool:
        """
        Asks Azure whether the name is still available. Account names are
        global, so a taken name means the account exists (possibly in
        another subscription).
        """
        try:
            result = self.storage_client.storage_accounts.check_name_availability(
                StorageAccountCheckNameAvailabilityParameters(name=name)
            )
        except ClientAuthenticationError as e:
            logger.error(f"Azure Authentication Failed: {e}")
            raise StorageAuthenticationError(str(e)) from e
        except Exception as e:
            logger.error(f"Azure name availability check failed for {name}: {e}")
            raise

        if result.name_available:
            return False
        if result.reason == 'AlreadyExists':
            return True
        # AccountNameInvalid: the service rejected the name itself
        logger.warning(f"Azure reports account name {name} as unusable: {result.message}")
        return False

    def create(self, name: str, resource_group: str, location: str) -> None:
        params = StorageAccountCreateParameters(
            sku=Sku(name=self.sku_name),
            kind=Kind.STORAGE_V2,
            location=location,
            enable_https_traffic_only=True,
            minimum_tls_version='TLS1_2',
            allow_blob_public_access=False,
        )
        try:
            poller = self.storage_client.storage_accounts.begin_create(resource_group, name, params)
            poller.result()
            logger.info(f"Azure: Created storage account {name} in {resource_group} ({location})")
        except ClientAuthenticationError as e:
            logger.error(f"Azure Authentication Failed: {e}")
            raise StorageAuthenticationError(str(e)) from e
        except Exception as e:
            logger.error(f"Azure account creation failed for {name}: {e}")
            raise

    def get_key(self, name: str, resource_group: str) -> str:
        try:
            keys = self.storage_client.storage_accounts.list_keys(resource_group, name)
        except ResourceNotFoundError as e:
            logger.error(f"Azure: storage account {name} not found in {resource_group}")
            raise StorageAccountNotFound(name) from e
        except ClientAuthenticationError as e:
            logger.error(f"Azure Authentication Failed: {e}")
            raise StorageAuthenticationError(str(e)) from e
        except Exception as e:
            logger.error(f"Azure key lookup failed for {name}: {e}")
            raise

        if not keys.keys:
            raise StorageAuthenticationError(f"Storage account '{name}' has no access keys")
        return keys.keys[0].value

    def delete(self, name: str, resource_group: str) -> None:
        try:
            self.storage_client.storage_accounts.delete(resource_group, name)
            logger.info(f"Azure: Deleted storage account {name} from {resource_group}")
        except Exception as e:
            logger.error(f"Azure account deletion failed for {name}: {e}")
            raise

    # --- Containers ---

    def container_exists(self, name: str, context: StorageContext) -> bool:
        try:
            return self._blob_service(context).get_container_client(name).exists()
        except Exception as e:
            logger.error(f"Azure container check failed for {name}: {e}")
            raise

    def create_container(self, name: str, context: StorageContext):
        """
        Creates the container and returns its ContainerClient.
        An already existing container is returned as is.
        """
        blob_service = self._blob_service(context)
        try:
            container_client = blob_service.create_container(name)
            logger.info(f"Azure: Created container {name} in {context.account_name}")
            return container_client
        except ResourceExistsError:
            logger.info(f"Azure: Container {name} already exists in {context.account_name}")
            return blob_service.get_container_client(name)
        except Exception as e:
            logger.error(f"Azure container creation failed for {name}: {e}")
            raise

    def delete_container(self, name: str, context: StorageContext) -> None:
        try:
            self._blob_service(context).delete_container(name)
            logger.info(f"Azure: Deleted container {name} from {context.account_name}")
        except ResourceNotFoundError as e:
            logger.error(f"Azure: container {name} not found in {context.account_name}")
            raise ContainerNotFound(name) from e
        except Exception as e:
            logger.error(f"Azure container deletion failed for {name}: {e}")
            raise

    # --- Blobs ---

    def list_blobs(self, container: str, context: StorageContext,
                   prefix: Optional[str] = None) -> List[FileDescriptor]:
        try:
            container_client = self._blob_service(context).get_container_client(container)
            # list_blobs returns an ItemPaged; materialise it while the client is alive
            return [
                FileDescriptor(name=blob.name, size=blob.size)
                for blob in container_client.list_blobs(name_starts_with=prefix)
            ]
        except ResourceNotFoundError as e:
            logger.error(f"Azure: container {container} not found in {context.account_name}")
            raise ContainerNotFound(container) from e
        except Exception as e:
            logger.error(f"Azure list error for container {container}: {e}")
            raise

    def upload(self, local_path: str, container: str, blob_name: str,
               context: StorageContext, timeout: Optional[int] = None) -> None:
        """
        Uploads a file as a blob, overwriting the existing one.
        Args:
            local_path: File on disk
            blob_name: Blob name (e.g. 'exports/2024/data.csv')
            timeout: Server-side timeout in seconds
        """
        blob_client = self._blob_service(context).get_blob_client(
            container=container,
            blob=blob_name
        )
        try:
            with open(local_path, 'rb') as data:
                blob_client.upload_blob(data, overwrite=True, timeout=timeout)
            logger.info(f"Azure Upload: Uploaded {local_path} to {container}/{blob_name}")
        except FileNotFoundError as e:
            logger.error(f"Azure Upload: local file {local_path} disappeared before upload")
            raise LocalFileNotFound(local_path) from e
        except AzureError as e:
            logger.error(f"Azure Upload Error for {container}/{blob_name}: {e}")
            raise TransferError(blob_name, str(e)) from e
