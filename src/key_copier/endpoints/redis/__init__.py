from key_copier.endpoints.redis.endpoint import RedisEndpoint

__all__ = ["RedisEndpoint"]
