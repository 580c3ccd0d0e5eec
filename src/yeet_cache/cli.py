"""Maintenance commands for the shared (Redis) cache tier.

The in-process caches live and die with each service process, so the only
cache an operator can inspect or clear from outside is the Redis tier.
"""

from __future__ import annotations

import asyncio
import logging
import sys
import typing as t

import click

from yeet_cache.cache.redis_cache import RedisCache

_logger = logging.getLogger("yeet_cache.cli")

T = t.TypeVar("T")


def _run(cache: RedisCache, op: t.Callable[[RedisCache], t.Awaitable[T]]) -> T:
    async def _main() -> T:
        try:
            return await op(cache)
        finally:
            await cache.close()

    return asyncio.run(_main())


@click.group()
@click.option("--redis-url", envvar="REDIS_URL", default="redis://localhost:6379/0", show_default=True)
@click.option("--prefix", envvar="REDIS_PREFIX", default="yeet", show_default=True, help="Key prefix used by the service")
@click.option("--log-level", default="INFO", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]))
@click.pass_context
def main(ctx: click.Context, redis_url: str, prefix: str, log_level: str) -> None:
    """Inspect and clear the shared post cache."""
    logging.basicConfig(level=log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    ctx.obj = RedisCache(redis_url, prefix=prefix)


@main.command()
@click.pass_obj
def stats(cache: RedisCache) -> None:
    """Show key counts by type."""
    result = _run(cache, lambda c: c.get_stats())
    click.echo(f"Total keys: {result['total_keys']}")
    for key_type, count in sorted(result["keys_by_type"].items()):
        click.echo(f"  {key_type}: {count}")


@main.command()
@click.argument("target")
@click.pass_obj
def clear(cache: RedisCache, target: str) -> None:
    """Clear all keys (TARGET=all) or keys matching a glob pattern like 'post:*'."""
    pattern = "*" if target == "all" else target
    _logger.info("Clearing cache pattern %s", pattern)
    removed = _run(cache, lambda c: c.clear_pattern(pattern))
    click.echo(f"Cleared {removed} keys matching {pattern}")


@main.command()
@click.pass_obj
def ping(cache: RedisCache) -> None:
    """Exit non-zero when Redis is unreachable."""
    if not _run(cache, lambda c: c.ping()):
        click.echo("unreachable", err=True)
        sys.exit(1)
    click.echo("ok")


if __name__ == "__main__":
    main()
