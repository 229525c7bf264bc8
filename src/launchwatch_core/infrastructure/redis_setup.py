"""Redis Connection Factory

All cross-invocation state (dedup fingerprints, pending verifications, locks,
last-processed commit shas) lives in Redis. Supports:
- A single connection URL (REDIS_URL), as handed out by hosted providers
- Standalone Redis (REDIS_HOST / REDIS_PORT)
- Redis Sentinel (REDIS_MODE=sentinel)
"""

import logging
import os
from typing import List, Optional, Tuple

from redis.asyncio import Redis
from redis.asyncio.sentinel import Sentinel

from launchwatch_core.utils import service_startup_retry

logger = logging.getLogger(__name__)

DEFAULT_SENTINEL_PORT = 26379


def _parse_sentinel_hosts(hosts_str: str) -> List[Tuple[str, int]]:
    """Parse "host1:26379,host2" into [("host1", 26379), ("host2", 26379)]."""
    sentinels = []
    for entry in hosts_str.split(","):
        entry = entry.strip()
        if not entry:
            continue
        if ":" in entry:
            host, port_str = entry.rsplit(":", 1)
            sentinels.append((host, int(port_str)))
        else:
            sentinels.append((entry, DEFAULT_SENTINEL_PORT))
    return sentinels


@service_startup_retry
async def _verify_redis_connection(client: Redis) -> None:
    await client.ping()
    logger.info("[Redis] Connection verified")


async def get_redis_client(
    url: Optional[str] = None,
    mode: Optional[str] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
    db: Optional[int] = None,
    password: Optional[str] = None,
    sentinel_hosts: Optional[str] = None,
    master_set: Optional[str] = None,
    socket_timeout: float = 5.0,
) -> Redis:
    """Create and verify an async Redis client.

    Explicit arguments win over environment variables.

    Environment Variables:
        REDIS_URL: Full connection URL; when set, mode/host/port are ignored
        REDIS_MODE: "standalone" (default) or "sentinel"
        REDIS_HOST / REDIS_PORT / REDIS_DB / REDIS_PASSWORD
        REDIS_SENTINEL_HOSTS: Comma-separated "host:port" pairs (sentinel mode)
        REDIS_MASTER_SET: Sentinel master name (default: "mymaster")

    Every operation carries ``socket_timeout`` so a stalled store cannot eat
    the evaluation budget.

    Raises:
        ValueError: Sentinel mode without any sentinel hosts
        ConnectionError: Redis unreachable after startup retries
    """
    url = url or os.getenv("REDIS_URL")
    db_index = db if db is not None else int(os.getenv("REDIS_DB", "0"))
    password = password or os.getenv("REDIS_PASSWORD")

    if url:
        logger.info("[Redis] Connecting via REDIS_URL")
        client = Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        await _verify_redis_connection(client)
        return client

    mode = (mode or os.getenv("REDIS_MODE", "standalone")).lower()

    if mode == "sentinel":
        sentinel_hosts_str = sentinel_hosts or os.getenv("REDIS_SENTINEL_HOSTS", "")
        master_name = master_set or os.getenv("REDIS_MASTER_SET", "mymaster")
        sentinels = _parse_sentinel_hosts(sentinel_hosts_str)
        if not sentinels:
            raise ValueError(
                "REDIS_SENTINEL_HOSTS must list at least one host:port for Sentinel mode"
            )

        logger.info(f"[Redis] Connecting through Sentinel: master={master_name}, sentinels={sentinels}")
        sentinel = Sentinel(
            sentinels,
            sentinel_kwargs={"password": password} if password else {},
            socket_timeout=socket_timeout,
        )
        client = sentinel.master_for(
            master_name,
            db=db_index,
            password=password,
            decode_responses=True,
            socket_timeout=socket_timeout,
        )
    else:
        redis_host = host or os.getenv("REDIS_HOST", "localhost")
        redis_port = port if port is not None else int(os.getenv("REDIS_PORT", "6379"))
        logger.info(f"[Redis] Connecting to {redis_host}:{redis_port}/{db_index}")
        client = Redis(
            host=redis_host,
            port=redis_port,
            db=db_index,
            password=password,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )

    await _verify_redis_connection(client)
    return client
