from pathlib import Path

import pytest
from aiohttp import web

FIXTURES = Path(__file__).parent / "fixtures"


def make_table(rows: list[list[str]]) -> str:
    """Render rows as a bare <table>, one <td> per cell, the way the modem does."""
    body = "".join(
        "<tr>" + "".join(f"<td>{cell}</td>" for cell in row) + "</tr>" for row in rows
    )
    return f"<table>{body}</table>"


def make_page(*tables: list[list[str]]) -> str:
    return "<html><body>" + "".join(make_table(t) for t in tables) + "</body></html>"


@pytest.fixture
def status_page() -> str:
    return (FIXTURES / "status_cgi.html").read_text(encoding="iso-8859-1")


class FakeModem:
    """Serves whatever page/status code the test asks for at the status page path."""

    def __init__(self, page: str):
        self.page = page
        self.code = 200
        self.requests = 0
        self.server = None

    async def status_cgi(self, _request: web.Request) -> web.Response:
        self.requests += 1
        return web.Response(text=self.page, status=self.code, content_type="text/html")

    @property
    def target(self) -> str:
        return f"{self.server.host}:{self.server.port}"


@pytest.fixture
async def modem(aiohttp_server, status_page) -> FakeModem:
    fake = FakeModem(status_page)
    app = web.Application()
    app.router.add_get("/cgi-bin/status_cgi", fake.status_cgi)
    fake.server = await aiohttp_server(app)
    return fake
