"""HTTP clients for the admin service and the identity provider."""

from .admin_service import AdminServiceClient
from .base import ApiResponse, ServiceClient, StatusMapping
from .identity_provider import IdentityProviderClient

__all__ = [
    "AdminServiceClient",
    "ApiResponse",
    "IdentityProviderClient",
    "ServiceClient",
    "StatusMapping",
]
