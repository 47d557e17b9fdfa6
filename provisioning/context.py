from dataclasses import dataclass, field

DEFAULT_ENDPOINT_SUFFIX = 'core.windows.net'


@dataclass(frozen=True)
class StorageContext:
    """
    Credential-bearing handle for one storage account.

    Every container and blob operation needs one. Build it with
    `operations.get_storage_context`, which fetches the account key.
    """
    account_name: str
    account_key: str = field(repr=False)
    endpoint_suffix: str = DEFAULT_ENDPOINT_SUFFIX

    @property
    def account_url(self) -> str:
        return f"https://{self.account_name}.blob.{self.endpoint_suffix}"

    @property
    def connection_string(self) -> str:
        return (
            f"DefaultEndpointsProtocol=https;"
            f"AccountName={self.account_name};"
            f"AccountKey={self.account_key};"
            f"EndpointSuffix={self.endpoint_suffix}"
        )
