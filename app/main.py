#!/usr/bin/env python3
"""
Main / entry point for the Arris modem exporter.

"""
import asyncio
from os import getenv

import structlog
from aiohttp import ClientSession, ClientTimeout, web
from arris.client import ArrisClient
from arris.handler import make_app
from util.const import DEFAULT_MODEM_PORT, REQUEST_HEADERS, LogLevel

# cfg-file/arg-arse/clip is overkill for the few things that need to be configured.
# k8s makes it trivial to define env-vars so we'll just use that.
##
# Empty means all interfaces
METRICS_HOST = getenv("METRICS_HOST", "")
METRICS_PORT = int(getenv("METRICS_PORT", "9393"))
METRICS_PATH = getenv("METRICS_PATH", "/metrics")

# Timeout for each request to a modem; 0 for no timeout
ARRIS_TIMEOUT_SECONDS = float(getenv("ARRIS_TIMEOUT_SECONDS", "5"))
# Used when the `target` parameter doesn't have a port
ARRIS_DEFAULT_PORT = int(getenv("ARRIS_DEFAULT_PORT", str(DEFAULT_MODEM_PORT)))


if getenv("LOG_LEVEL") not in LogLevel.__members__ or getenv("LOG_LEVEL") is None:
    print(f"Defaulting to {LogLevel.INFO} log level")
    log_level = LogLevel.INFO
else:
    log_level = LogLevel[getenv("LOG_LEVEL")]  # type: ignore
    print(f"Using log level {log_level.value}")


structlog.configure(
    wrapper_class=structlog.make_filtering_bound_logger(log_level.value)
)

log = structlog.get_logger(__name__)


async def main():
    """Main entry point."""
    log.info("Starting up")

    timeout = ClientTimeout(total=ARRIS_TIMEOUT_SECONDS if ARRIS_TIMEOUT_SECONDS > 0 else None)
    client = ClientSession(headers=REQUEST_HEADERS, timeout=timeout)

    # Called on every scrape; the session (and its connection pool) is shared between all modems.
    def dial(addr: str) -> ArrisClient:
        return ArrisClient(addr, client)

    app = make_app(dial, metrics_path=METRICS_PATH, default_port=ARRIS_DEFAULT_PORT)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host=METRICS_HOST or None, port=METRICS_PORT)
    await site.start()
    log.info("Metrics server started", host=METRICS_HOST, port=METRICS_PORT, path=METRICS_PATH)

    try:
        # Nothing to do here; all the work happens in the handler
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()
        await client.close()


if __name__ == "__main__":
    asyncio.run(main())
