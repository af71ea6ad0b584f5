"""HTTP clients for external service communication."""

from project_hub_service.clients.identity_client import IdentityClient

__all__ = ["IdentityClient"]
