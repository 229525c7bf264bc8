from launchwatch_core.infrastructure.redis_setup import get_redis_client

__all__ = ["get_redis_client"]
