"""MCP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState via the FastMCP lifespan context manager
- Register tools
- Start the stdio transport
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager, suppress
from pathlib import Path
from typing import TYPE_CHECKING

import aiosqlite
import structlog
from mcp.server.fastmcp import Context, FastMCP
from mcp.types import CallToolResult, TextContent

import pagedigest.tools.clear_cache as t_clear_cache
import pagedigest.tools.digest_page as t_digest_page
import pagedigest.tools.extract_article as t_extract_article
import pagedigest.tools.reset_usage as t_reset_usage
import pagedigest.tools.toggle_domain as t_toggle_domain
import pagedigest.tools.usage_stats as t_usage_stats
from pagedigest import __version__
from pagedigest.cache import DigestCache
from pagedigest.config import Settings
from pagedigest.digest import Digester, invalidate_on_settings_change
from pagedigest.errors import PageDigestError
from pagedigest.schedulers import run_periodic_flush
from pagedigest.site_config import load_site_config
from pagedigest.state import AppState
from pagedigest.storage import SqliteStorage
from pagedigest.summarizer import OpenAISummarizer, build_http_client, resolve_model
from pagedigest.usage import UsageTracker

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # stdout carries the MCP JSON-RPC stream
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncGenerator[AppState, None]:
    """Create and tear down all shared resources for the server's lifetime."""
    settings = Settings()
    _setup_logging(settings)

    log.info("server_starting", version=__version__, model=settings.digest.model)

    db_path = Path(settings.cache.db_path).expanduser()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    db = await aiosqlite.connect(str(db_path))
    storage = SqliteStorage(db)
    await storage.init_db()

    cache = DigestCache(
        storage,
        limit=settings.cache.limit,
        trim_to=settings.cache.trim_to,
        write_through=settings.cache.write_through,
    )
    await cache.init(settings.cache.flush_interval_seconds)
    await invalidate_on_settings_change(storage, cache, settings.digest)

    usage = UsageTracker(storage, resolve_model(settings.digest.model))
    await usage.load()
    usage_flush_task = asyncio.create_task(
        run_periodic_flush(usage, settings.cache.flush_interval_seconds, name="api_usage")
    )

    site_config = await load_site_config(storage)

    http_client = build_http_client(settings.openai)
    summarizer = OpenAISummarizer(http_client, settings.openai, settings.digest, usage)

    state = AppState(
        settings=settings,
        storage=storage,
        cache=cache,
        digester=Digester(cache, summarizer),
        usage=usage,
        site_config=site_config,
    )

    if settings.openai.api_key is None:
        log.warning("openai_api_key_missing", hint="digest_page calls will fail until it is set")

    log.info(
        "server_started",
        version=__version__,
        cache_size=cache.size,
        domains_mode=site_config.domains_mode,
    )

    try:
        yield state
    finally:
        usage_flush_task.cancel()
        with suppress(asyncio.CancelledError):
            await usage_flush_task
        await cache.close()
        await usage.save()
        await http_client.aclose()
        await db.close()
        log.info("server_stopping")


# ---------------------------------------------------------------------------
# FastMCP instance and tool registration
# ---------------------------------------------------------------------------

mcp = FastMCP("pagedigest", lifespan=lifespan)
# FastMCP has no version kwarg; set it on the underlying Server so the
# initialize handshake reports our version.
mcp._mcp_server.version = __version__  # pyright: ignore[reportPrivateUsage]


def _serialise_tool_error(error: PageDigestError) -> CallToolResult:
    """Convert a PageDigestError to the MCP tool error result envelope."""
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(error.to_dict()))],
        isError=True,
    )


def _log_tool_error(tool: str, exc: PageDigestError) -> None:
    log.warning(
        "tool_error",
        tool=tool,
        code=exc.code,
        message=exc.message,
        recoverable=exc.recoverable,
    )


@mcp.tool()
async def digest_page(
    html: str,
    url: str,
    ctx: Context,
    size: str = "large",
    selection: str = "",
) -> object:
    """Summarize the main article of a web page.

    Pass the page's full HTML and its URL. size is "large" (about half the
    original length, simplified) or "small" (about a fifth). If selection is
    non-empty it is summarized instead of the detected article. Results are
    cached per input text and size.
    """
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_digest_page.handle(html, url, size, selection, state)
    except PageDigestError as exc:
        _log_tool_error("digest_page", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="digest_page", exc_info=True)
        raise


@mcp.tool()
async def extract_article(html: str, url: str, ctx: Context, selection: str = "") -> object:
    """Extract the article text from a page without summarizing it.

    Also reports every scored container candidate and which selectors and
    exclusion rules matched, to help tune per-site rules.
    """
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_extract_article.handle(html, url, selection, state)
    except PageDigestError as exc:
        _log_tool_error("extract_article", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="extract_article", exc_info=True)
        raise


@mcp.tool()
async def clear_cache(ctx: Context) -> object:
    """Delete every cached digest."""
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_clear_cache.handle(state)
    except PageDigestError as exc:
        _log_tool_error("clear_cache", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="clear_cache", exc_info=True)
        raise


@mcp.tool()
async def usage_stats(ctx: Context) -> object:
    """Report token usage and estimated API spend for the configured model."""
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_usage_stats.handle(state)
    except PageDigestError as exc:
        _log_tool_error("usage_stats", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="usage_stats", exc_info=True)
        raise


@mcp.tool()
async def reset_usage(ctx: Context) -> object:
    """Zero the token usage counters. Returns the counters as they were."""
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_reset_usage.handle(state)
    except PageDigestError as exc:
        _log_tool_error("reset_usage", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="reset_usage", exc_info=True)
        raise


@mcp.tool()
async def toggle_domain(host: str, ctx: Context) -> object:
    """Enable or disable digests for a hostname. Returns the new state."""
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_toggle_domain.handle(host, state)
    except PageDigestError as exc:
        _log_tool_error("toggle_domain", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="toggle_domain", exc_info=True)
        raise


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
