"""
aiohttp web handler that serves prometheus metrics for whichever modem the scraper asks for.

Prometheus is configured to send a `target` query parameter with each scrape; that's the address of the
    modem to fetch the status page from.
"""

import asyncio
from collections.abc import Callable

import structlog
from aiohttp import ClientError, web
from err.exceptions import CollectError, ModemNotOkError, ParseError
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest
from util.const import DEFAULT_MODEM_PORT

from arris import metrics
from arris.client import ArrisClient

log = structlog.get_logger(__name__)

# Given a base URL, return a client for the modem there
DialFunc = Callable[[str], ArrisClient]

# Anything that means "couldn't get a Status out of the modem" rather than a bug in the exporter
SCRAPE_ERRORS = (ClientError, asyncio.TimeoutError, ModemNotOkError, ParseError)


def split_host_port(target: str) -> tuple[str, str]:
    """'host:port' or '[v6 host]:port' -> (host, port). ValueError if there is no port."""
    if target.startswith("["):
        end = target.find("]")
        if end < 0:
            raise ValueError(f"missing ']' in address: {target!r}")
        host, rest = target[1:end], target[end + 1 :]
        if not rest.startswith(":"):
            raise ValueError(f"missing port in address: {target!r}")
        return host, rest[1:]

    if target.count(":") != 1:
        raise ValueError(f"missing port in address: {target!r}")
    host, port = target.split(":")
    return host, port


def join_host_port(host: str, port: str | int) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def resolve_target(target: str, default_port: int = DEFAULT_MODEM_PORT) -> str:
    """Normalize the target parameter into host:port, filling in the default port if none was given."""
    try:
        host, port = split_host_port(target)
    except ValueError:
        # Assume no port was provided
        host, port = target.strip("[]"), str(default_port)
    return join_host_port(host, port)


class MetricsHandler:
    """Handles a single scrape: fetch the status page, parse it and expose the result."""

    def __init__(self, dial: DialFunc, default_port: int = DEFAULT_MODEM_PORT):
        self.dial = dial
        self.default_port = default_port

    async def handle(self, request: web.Request) -> web.Response:
        target = request.query.get("target", "")
        if target == "":
            raise web.HTTPBadRequest(text="missing target parameter")

        addr = resolve_target(target, self.default_port)
        try:
            client = self.dial(f"http://{addr}")
        except ValueError as e:
            log.error("Failed to dial modem", target=addr, error=e)
            raise web.HTTPInternalServerError(
                text=f"failed to dial arris device at {addr!r}: {e}"
            ) from e

        try:
            status = await client.status()
            collector = metrics.StatusCollector(status=status)
        except SCRAPE_ERRORS as e:
            log.error("Failed to scrape modem", target=addr, error=e)
            collector = metrics.StatusCollector(error=e)

        # Fresh registry per request; the device metrics only make sense for this one scrape
        registry = CollectorRegistry()
        registry.register(collector)
        for meta_metric in metrics.META_METRICS:
            registry.register(meta_metric)

        try:
            output = generate_latest(registry)
        except CollectError as e:
            raise web.HTTPInternalServerError(text=str(e)) from e

        log.info("Scraped modem", target=addr)
        return web.Response(body=output, headers={"Content-Type": CONTENT_TYPE_LATEST})


def make_app(
    dial: DialFunc,
    metrics_path: str = "/metrics",
    default_port: int = DEFAULT_MODEM_PORT,
) -> web.Application:
    """Build the exporter web app. Anything hitting / gets sent to `metrics_path`."""

    async def redirect(_request: web.Request) -> web.Response:
        raise web.HTTPMovedPermanently(location=metrics_path)

    app = web.Application()
    app.router.add_get(metrics_path, MetricsHandler(dial, default_port).handle)
    if metrics_path != "/":
        app.router.add_get("/", redirect)
    return app
