class StorageError(Exception):
    """Base class for every error raised by the provisioning app."""


class StorageConfigurationError(StorageError):
    """A required setting (subscription, resource group, ...) is missing."""


class StorageAuthenticationError(StorageError):
    """The configured credential or account key was rejected."""


class StorageAccountNotFound(StorageError):
    def __init__(self, account_name: str):
        self.account_name = account_name
        super().__init__(f"Storage account '{account_name}' not found")


class ContainerNotFound(StorageError):
    def __init__(self, container_name: str):
        self.container_name = container_name
        super().__init__(f"Container '{container_name}' not found")


class TransferError(StorageError):
    """
    An upload failed because of a timeout or a network/service error.
    Fatal for the calling workflow: nothing retries it.
    """

    def __init__(self, blob_name: str, message: str):
        self.blob_name = blob_name
        super().__init__(f"Transfer of '{blob_name}' failed: {message}")


class LocalFileNotFound(StorageError, FileNotFoundError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Local file '{path}' does not exist")


class StorageAccountConflict(StorageError):
    """The account name is already used by an account in another resource group."""

    def __init__(self, account_name: str, resource_group: str):
        self.account_name = account_name
        self.resource_group = resource_group
        super().__init__(f"Storage account '{account_name}' already exists in resource group '{resource_group}'")
