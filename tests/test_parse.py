import io
from datetime import timedelta

import pytest
from conftest import make_page
from err.exceptions import HardwareAddrError, NoRowsError, RowLengthError

from arris.parse import parse, parse_hardware_addr
from arris.status import Downstream, Interface, Status, Upstream

DS_HEADER = [
    "",
    "<b>DCID</b>",
    "<b>Freq</b>",
    "<b>Power</b>",
    "<b>SNR</b>",
    "<b>Modulation</b>",
    "<b>Octets</b>",
    "<b>Correcteds</b>",
    "<b>Uncorrectables</b>",
]


def test_parse_fixture(status_page):
    status = parse(status_page)

    assert status.downstream == (
        Downstream("Downstream 1", 1, 591.0, 2.1, 38.61, "256QAM", 3021473849, 110, 0),
        Downstream("Downstream 2", 2, 597.0, -0.5, 37.36, "256QAM", 2984726121, 0, 3),
    )
    assert status.upstream == (
        Upstream("Upstream 1", 3, 30.6, 41.5, "DOCSIS2.0 (ATDMA)", 5120, "64QAM"),
        Upstream("Upstream 2", 4, 23.7, 41.0, "DOCSIS1.x (TDMA)", 0, "16QAM"),
    )
    assert status.interfaces == (
        Interface("LAN", True, True, "1000(Full)", parse_hardware_addr("00:1d:d5:aa:bb:01")),
        Interface("CABLE", True, True, "n/a", parse_hardware_addr("00:1d:d5:aa:bb:02")),
        Interface("MTA", False, False, "n/a", parse_hardware_addr("00:1d:d5:aa:bb:03")),
    )
    assert status.uptime == timedelta(hours=2, minutes=43)


def test_parse_accepts_bytes_and_files(status_page):
    expected = parse(status_page)
    raw = status_page.encode("iso-8859-1")
    assert parse(raw) == expected
    assert parse(io.BytesIO(raw)) == expected


def test_parse_single_downstream_channel():
    page = make_page(
        [
            DS_HEADER,
            ["CH1", "1", "591.0 MHz", "2.1 dBmV", "38.5 dB", "QAM256", "123456", "10", "0"],
        ]
    )
    status = parse(page)
    assert status.downstream == (
        Downstream(
            name="CH1",
            dcid=1,
            frequency=591.0,
            power=2.1,
            snr=38.5,
            modulation="QAM256",
            octets=123456,
            corrected=10,
            uncorrectable=0,
        ),
    )
    assert status.upstream == ()
    assert status.interfaces == ()
    assert status.uptime == timedelta(0)


def test_parse_empty_document():
    assert parse("<html><body><p>Loading...</p></body></html>") == Status()


def test_parse_unknown_sections_are_ignored():
    page = make_page([["Foo", "Bar"], ["1", "2", "3"]], [["System Uptime:", "2 d: 3 h: 15 m"]])
    status = parse(page)
    assert status.uptime == timedelta(days=2, hours=3, minutes=15)
    assert status.downstream == ()


def test_parse_last_uptime_wins():
    page = make_page(
        [["System Uptime:", "2 d: 3 h: 15 m"]],
        [["System Uptime:", "0 d: 0 h: 5 m"]],
    )
    assert parse(page).uptime == timedelta(minutes=5)


def test_parse_header_without_rows_fails():
    with pytest.raises(NoRowsError):
        parse(make_page([DS_HEADER]))


def test_parse_empty_table_fails():
    with pytest.raises(NoRowsError):
        parse(make_page([[""]]))


def test_parse_malformed_row_fails_everything(status_page):
    # Good downstream table followed by a broken interface table; nothing comes back
    broken = status_page.replace("00:1d:d5:aa:bb:03", "not-a-mac")
    with pytest.raises(HardwareAddrError):
        parse(broken)


def test_parse_short_row_fails():
    page = make_page([DS_HEADER, ["CH1", "1", "591.0 MHz"]])
    with pytest.raises(RowLengthError, match="downstream"):
        parse(page)


def test_parse_header_wrapped_in_unknown_tag():
    # <span> isn't an excluded tag but its name lands after the text, so 'DCID' still leads the row
    header = ["<span>DCID</span>"] + DS_HEADER[2:]
    row = ["CH1", "1", "591.0 MHz", "2.1 dBmV", "38.5 dB", "QAM256", "123456", "10", "0"]
    status = parse(make_page([header, row]))

    assert [ch.name for ch in status.downstream] == ["CH1"]
