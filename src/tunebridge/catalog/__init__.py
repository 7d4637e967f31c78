"""Source catalog clients."""

from tunebridge.catalog.base import CatalogClient
from tunebridge.catalog.credentials import (
    AccessToken,
    ClientCredentialsProvider,
    CredentialProvider,
    StaticTokenProvider,
)
from tunebridge.catalog.spotify import SpotifyCatalogClient

__all__ = [
    "AccessToken",
    "CatalogClient",
    "ClientCredentialsProvider",
    "CredentialProvider",
    "SpotifyCatalogClient",
    "StaticTokenProvider",
]
