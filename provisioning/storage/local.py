import os
import json
import shutil
import secrets
import base64
import logging
from typing import List, Optional
from django.conf import settings
from ..context import StorageContext
from ..exceptions import (
    ContainerNotFound,
    StorageAccountConflict,
    StorageAccountNotFound,
    StorageAuthenticationError,
    TransferError,
)
from ..interfaces.storage import StorageProvider
from ..uploads import FileDescriptor

logger = logging.getLogger(__name__)

ACCOUNT_METADATA_FILE = 'account.json'


def _resolve_under(root: str, relative: str) -> Optional[str]:
    """
    Joins `relative` onto `root` and returns the real path, or None when the
    result is `root` itself or lies outside it.
    """
    real_root = os.path.realpath(root)
    path = os.path.realpath(os.path.join(real_root, relative))
    if path == real_root or os.path.commonpath([real_root, path]) != real_root:
        return None
    return path


class LocalStorageProvider(StorageProvider):
    """
    Storage provider that emulates storage accounts on the local filesystem.
    Each account is a directory under LOCAL_STORAGE_ROOT holding an
    'account.json' with its resource group, location and key; containers
    are sub-directories and blobs are files inside them.
    """

    def __init__(self, base_path: Optional[str] = None):
        self.base_path = str(base_path or settings.LOCAL_STORAGE_ROOT)

        # Ensure the directory exists
        if not os.path.exists(self.base_path):
            try:
                os.makedirs(self.base_path)
                logger.info(f"Created local storage directory at: {self.base_path}")
            except OSError as e:
                logger.error(f"Failed to create local storage directory: {e}")
                raise

    def _account_path(self, name: str) -> str:
        account_path = _resolve_under(self.base_path, name)
        if account_path is None:
            logger.error(f"Local Storage: account name {name!r} escapes the storage root")
            raise StorageAccountNotFound(name)
        return account_path

    def _read_metadata(self, name: str) -> dict:
        metadata_path = os.path.join(self._account_path(name), ACCOUNT_METADATA_FILE)
        if not os.path.isfile(metadata_path):
            raise StorageAccountNotFound(name)
        with open(metadata_path) as f:
            return json.load(f)

    def _container_path(self, name: str, context: StorageContext) -> str:
        """
        Resolves a container directory after checking the context's key
        against the account's stored key.
        """
        metadata = self._read_metadata(context.account_name)
        if not secrets.compare_digest(metadata['key'], context.account_key):
            logger.error(f"Local Storage: key rejected for account {context.account_name}")
            raise StorageAuthenticationError(f"Invalid key for storage account '{context.account_name}'")
        container_path = _resolve_under(self._account_path(context.account_name), name)
        if container_path is None:
            logger.error(f"Local Storage: container name {name!r} escapes account {context.account_name}")
            raise ContainerNotFound(name)
        return container_path

    # --- Storage accounts ---

    def exists(self, name: str) -> bool:
        if _resolve_under(self.base_path, name) is None:
            return False
        return os.path.isfile(os.path.join(self._account_path(name), ACCOUNT_METADATA_FILE))

    def create(self, name: str, resource_group: str, location: str) -> None:
        """
        Creates the account directory and its key. Creating an account that
        already exists in the same resource group keeps its key.
        """
        account_path = self._account_path(name)
        if self.exists(name):
            existing = self._read_metadata(name)
            if existing['resource_group'] != resource_group:
                logger.error(f"Local Storage: account {name} already exists in {existing['resource_group']}")
                raise StorageAccountConflict(name, existing['resource_group'])
            logger.info(f"Local Storage: Account {name} already exists in {resource_group}")
            return
        metadata = {
            'name': name,
            'resource_group': resource_group,
            'location': location,
            'key': base64.b64encode(secrets.token_bytes(64)).decode('ascii'),
        }
        try:
            os.makedirs(account_path, exist_ok=True)
            with open(os.path.join(account_path, ACCOUNT_METADATA_FILE), 'w') as f:
                json.dump(metadata, f, indent=2)
            logger.info(f"Local Storage: Created account {name} in {resource_group} ({location})")
        except OSError as e:
            logger.error(f"Local Storage Error creating account {name}: {e}")
            raise

    def get_key(self, name: str, resource_group: str) -> str:
        metadata = self._read_metadata(name)
        if metadata['resource_group'] != resource_group:
            # Same answer Azure gives for an account outside the resource group
            raise StorageAccountNotFound(name)
        return metadata['key']

    def delete(self, name: str, resource_group: str) -> None:
        metadata = self._read_metadata(name)
        if metadata['resource_group'] != resource_group:
            raise StorageAccountNotFound(name)
        shutil.rmtree(self._account_path(name))
        logger.info(f"Local Storage: Deleted account {name}")

    # --- Containers ---

    def container_exists(self, name: str, context: StorageContext) -> bool:
        return os.path.isdir(self._container_path(name, context))

    def create_container(self, name: str, context: StorageContext) -> str:
        """
        Creates the container directory and returns its path.
        """
        container_path = self._container_path(name, context)
        if os.path.isdir(container_path):
            logger.info(f"Local Storage: Container {name} already exists")
            return container_path
        os.makedirs(container_path)
        logger.info(f"Local Storage: Created container {name} in {context.account_name}")
        return container_path

    def delete_container(self, name: str, context: StorageContext) -> None:
        container_path = self._container_path(name, context)
        if not os.path.isdir(container_path):
            raise ContainerNotFound(name)
        shutil.rmtree(container_path)
        logger.info(f"Local Storage: Deleted container {name} from {context.account_name}")

    # --- Blobs ---

    def list_blobs(self, container: str, context: StorageContext,
                   prefix: Optional[str] = None) -> List[FileDescriptor]:
        container_path = self._container_path(container, context)
        if not os.path.isdir(container_path):
            raise ContainerNotFound(container)

        blobs = []
        for root, _dirs, files in os.walk(container_path):
            for file_name in files:
                full_path = os.path.join(root, file_name)
                # Blob names always use forward slashes
                blob_name = os.path.relpath(full_path, container_path).replace(os.sep, '/')
                if prefix and not blob_name.startswith(prefix):
                    continue
                blobs.append(FileDescriptor(name=blob_name, size=os.path.getsize(full_path)))
        return sorted(blobs, key=lambda blob: blob.name)

    def upload(self, local_path: str, container: str, blob_name: str,
               context: StorageContext, timeout: Optional[int] = None) -> None:
        """
        Copies the file into the container. `timeout` has no meaning locally.
        """
        container_path = self._container_path(container, context)
        if not os.path.isdir(container_path):
            raise ContainerNotFound(container)

        full_path = _resolve_under(container_path, blob_name.lstrip('/'))
        if full_path is None:
            logger.error(f"Local Storage: blob name {blob_name!r} escapes container {container}")
            raise TransferError(blob_name, f"blob name resolves outside container '{container}'")
        try:
            os.makedirs(os.path.dirname(full_path), exist_ok=True)
            shutil.copyfile(local_path, full_path)
            logger.info(f"Local Storage: Saved {local_path} as {container}/{blob_name}")
        except OSError as e:
            logger.error(f"Local Storage Error saving {container}/{blob_name}: {e}")
            raise TransferError(blob_name, str(e)) from e
