"""Ping Redis with the configured REDIS_URL."""
import asyncio
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from redis.exceptions import RedisError

from app.redis import RedisClient


async def check_redis() -> int:
    client = RedisClient.get_client()
    try:
        pong = await client.ping()
        print(f"✅ Redis responded: {pong}")
        return 0
    except RedisError as e:
        print(f"❌ Redis unreachable: {e}")
        return 1
    finally:
        await RedisClient.close()

if __name__ == "__main__":
    sys.exit(asyncio.run(check_redis()))
