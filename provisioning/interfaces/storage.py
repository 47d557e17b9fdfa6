from abc import ABC, abstractmethod
from typing import List, Optional

from ..context import StorageContext
from ..uploads import FileDescriptor


class AccountProvider(ABC):
    """
    Contract for storage account management (the control plane).
    """

    @abstractmethod
    def exists(self, name: str) -> bool:
        """
        Returns True if a storage account with this name already exists anywhere.
        Account names are globally unique, so no resource group is needed.
        """
        pass

    @abstractmethod
    def create(self, name: str, resource_group: str, location: str) -> None:
        """
        Creates the storage account and waits until provisioning finishes.

        Args:
            name (str): Globally unique account name (e.g. 'mydatastore01').
            resource_group (str): Resource group that will own the account.
            location (str): Region, e.g. 'westeurope'.
        """
        pass

    @abstractmethod
    def get_key(self, name: str, resource_group: str) -> str:
        """
        Returns the first access key of the account.
        """
        pass

    @abstractmethod
    def delete(self, name: str, resource_group: str) -> None:
        pass


class ContainerProvider(ABC):
    """
    Contract for blob container management inside one storage account.
    """

    @abstractmethod
    def container_exists(self, name: str, context: StorageContext) -> bool:
        pass

    @abstractmethod
    def create_container(self, name: str, context: StorageContext):
        """
        Creates the container and returns a provider-specific handle to it.
        """
        pass

    @abstractmethod
    def delete_container(self, name: str, context: StorageContext) -> None:
        pass


class BlobTransferProvider(ABC):
    """
    Contract for listing and uploading blobs.
    """

    @abstractmethod
    def list_blobs(self, container: str, context: StorageContext,
                   prefix: Optional[str] = None) -> List[FileDescriptor]:
        """
        Lists the blobs in a container.

        Args:
            container (str): Container name.
            context (StorageContext): Account the container lives in.
            prefix (str): Only return blobs whose name starts with this prefix.
        """
        pass

    @abstractmethod
    def upload(self, local_path: str, container: str, blob_name: str,
               context: StorageContext, timeout: Optional[int] = None) -> None:
        """
        Uploads a local file as a blob, overwriting any existing blob.

        Raises:
            TransferError: The upload timed out or failed on the network.
        """
        pass


class StorageProvider(AccountProvider, ContainerProvider, BlobTransferProvider):
    """
    Everything a storage backend must offer.
    This ensures the operations can be swapped between Azure and local storage.
    """
