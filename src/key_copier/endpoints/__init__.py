from key_copier.endpoints.base import BaseEndpoint

__all__ = ["BaseEndpoint"]
