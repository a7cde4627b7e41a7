"""
Fetches the status page from a modem and hands it off to the parser.
"""

from urllib.parse import urlsplit, urlunsplit

import structlog
from aiohttp import ClientSession, ClientTimeout
from err.exceptions import ModemNotOkError, ParseError
from util.const import STATUS_PATH

from arris import metrics
from arris.parse import parse
from arris.status import Status

log = structlog.get_logger(__name__)


class ArrisClient:
    """Retrieves status from the web interface of a single Arris modem.

    `addr` is the base URL of the modem; whatever path it has is replaced with the status page path.
    `session` is shared between clients; `timeout` applies to each status() call.
    """

    def __init__(self, addr: str, session: ClientSession, timeout: ClientTimeout | None = None):
        parts = urlsplit(addr)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"invalid modem address: {addr!r}")
        # Only needed to validate the port; raises ValueError if it is garbage
        _ = parts.port

        self.addr = urlunsplit((parts.scheme, parts.netloc, STATUS_PATH, "", ""))
        self.session = session
        self.timeout = timeout

    async def status(self) -> Status:
        """Fetch and parse the status page.

        Raises ModemNotOkError on anything but a 200/OK; connection problems and timeouts from aiohttp
            are left for the caller.
        """
        log.debug("Requesting status page", url=self.addr)
        # No timeout given means the session's default applies
        kwargs = {} if self.timeout is None else {"timeout": self.timeout}
        with metrics.s_meta_scrape_time.time():
            async with self.session.get(self.addr, **kwargs) as resp:
                metrics.c_meta_scrape_result.labels(resp.status).inc()
                if resp.status != 200:
                    raise ModemNotOkError(
                        f"Failed to get status page. Status={resp.status}.",
                        status_code=resp.status,
                    )
                raw_status = await resp.read()

        try:
            status = parse(raw_status)
        except ParseError:
            metrics.c_meta_parse_result.labels(False).inc()
            raise
        metrics.c_meta_parse_result.labels(True).inc()
        return status
