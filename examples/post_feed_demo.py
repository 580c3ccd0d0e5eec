#!/usr/bin/env python3
"""Walk through the cache-aside flow against the in-memory repository.

Pass --redis-url to put a Redis second tier behind the in-process caches.
"""

import asyncio
import json
import logging
from typing import Optional

import click

from yeet_cache import InMemoryPostRepository, PostService, ServiceConfig


async def run(redis_url: Optional[str]) -> None:
    config = ServiceConfig.from_env()
    if redis_url:
        config.redis.enabled = True
        config.redis.url = redis_url

    repository = InMemoryPostRepository()
    await repository.follow(1, 2)
    for author, text in [(2, "first yeet"), (2, "second yeet"), (3, "not followed")]:
        await repository.create_post(author_id=author, content=text)

    service = PostService.from_config(repository, config)
    warmed = await service.start()
    print(f"warmed {warmed} posts")

    timeline = await service.get_timeline(1)
    print("timeline:", [p.content for p in timeline.posts])

    post = await service.create_post(author_id=1, content="my own yeet")
    await service.like_post(post.id, user_id=2)
    print("after like:", (await service.get_post(post.id)).like_count)

    timeline = await service.get_timeline(1)
    print("timeline:", [p.content for p in timeline.posts])

    print(json.dumps(await service.health(), indent=2, default=str))
    await service.close()


@click.command()
@click.option("--redis-url", default=None, help="Optional Redis URL for the shared tier")
@click.option("--verbose", is_flag=True, help="Log cache activity")
def main(redis_url: Optional[str], verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO)
    asyncio.run(run(redis_url))


if __name__ == "__main__":
    main()
