import pytest
from aiohttp import ClientSession, ClientTimeout
from err.exceptions import ModemNotOkError, NumberFormatError

from arris.client import ArrisClient


@pytest.fixture
async def session():
    async with ClientSession() as s:
        yield s


@pytest.mark.parametrize(
    "addr, expected",
    [
        ("http://192.168.100.1", "http://192.168.100.1/cgi-bin/status_cgi"),
        (
            "http://192.168.100.1:65001/index.html?x=1",
            "http://192.168.100.1:65001/cgi-bin/status_cgi",
        ),
        ("https://modem.lan/", "https://modem.lan/cgi-bin/status_cgi"),
    ],
)
async def test_client_forces_status_path(session, addr, expected):
    assert ArrisClient(addr, session).addr == expected


@pytest.mark.parametrize(
    "addr",
    ["192.168.100.1", "ftp://192.168.100.1", "http://", "http://192.168.100.1:notaport"],
)
async def test_client_rejects_bad_address(session, addr):
    with pytest.raises(ValueError):
        ArrisClient(addr, session)


async def test_client_status(modem, session):
    client = ArrisClient(f"http://{modem.target}", session, ClientTimeout(total=5))
    status = await client.status()

    assert modem.requests == 1
    assert [ch.name for ch in status.downstream] == ["Downstream 1", "Downstream 2"]
    assert status.uptime.total_seconds() == 9780


async def test_client_not_ok(modem, session):
    modem.code = 503
    client = ArrisClient(f"http://{modem.target}", session)
    with pytest.raises(ModemNotOkError) as exc:
        await client.status()
    assert exc.value.status_code == 503


async def test_client_parse_error_propagates(modem, session):
    modem.page = modem.page.replace("0 d:  2 h: 43 m", "a while")
    client = ArrisClient(f"http://{modem.target}", session)
    with pytest.raises(NumberFormatError):
        await client.status()
