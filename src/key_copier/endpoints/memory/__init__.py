from key_copier.endpoints.memory.endpoint import MemoryEndpoint

__all__ = ["MemoryEndpoint"]
