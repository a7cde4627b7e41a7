"""
Turns the HTML source of the Arris status page (/cgi-bin/status_cgi) into a Status.

The page has no ids/classes worth keying on so parsing is done in two passes:
    - walk every <tbody> and reduce each <tr> in it to a flat list of the text that looks meaningful
    - look at the first cell of each table to figure out which section it is and decode the rows
        into typed records

"""

import math
import re
from collections.abc import Callable, Iterator
from datetime import timedelta
from enum import Enum
from typing import IO

import structlog
from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString
from err.exceptions import (
    HardwareAddrError,
    NoRowsError,
    NumberFormatError,
    RowLengthError,
    UnitPairError,
)

from arris.status import Downstream, HardwareAddr, Interface, Status, Upstream

log = structlog.get_logger(__name__)

# Every section on the page is its own table; html5lib will insert the <tbody> if the modem didn't
GROUP_TAG = "tbody"
ROW_TAG = "tr"

# Tags that only wrap the text we want. Anything NOT in here will show up as a token in the row so
#   if the firmware starts wrapping values in <span> or <strong>, this is where to add it.
##
EXCLUDED_TAGS = frozenset({"b", "font", "td"})

# Placeholder the modem uses for "n/a" in the upstream value/unit cells
UPSTREAM_SENTINELS = {"----": "0.0"}
# ... and for the speed of an interface that isn't connected
SPEED_SENTINEL = "-----"
SPEED_NOT_AVAILABLE = "n/a"

UPTIME_LABEL = "System Uptime:"

_UINT64_MAX = 2**64 - 1
_UINT_RE = re.compile(r"[0-9]+")
_HEX_BYTE_RE = re.compile(r"[0-9A-Fa-f]{2}")
# Plain ASCII decimal floats plus inf/nan; float() on its own also takes unicode digits and underscores
_FLOAT_RE = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)


class Section(Enum):
    """The kinds of table we know how to decode"""

    DOWNSTREAM = "downstream"
    UPSTREAM = "upstream"
    SYSTEM_INFO = "system"
    INTERFACES = "interfaces"
    UNKNOWN = "unknown"


# First cell of the first row -> section
SECTION_HEADERS = {
    "DCID": Section.DOWNSTREAM,
    "UCID": Section.UPSTREAM,
    UPTIME_LABEL: Section.SYSTEM_INFO,
    "Interface Name": Section.INTERFACES,
}


##
# Row extraction
##
def extract_row(row: Tag, excluded: frozenset[str] = EXCLUDED_TAGS) -> list[str]:
    """Flatten a single <tr> into the ordered list of text it contains.

    Every node under the row is visited; elements contribute their tag name and text nodes their text.
    An element's tag name comes AFTER everything inside it, so `<td><span>DCID</span></td>` still starts
        with 'DCID'.
    Anything that is blank or in `excluded` is dropped.
    Comments, doctypes and the like are never tokens.

    E.G.: `<tr><td><b>DCID</b></td><td><font>Freq</font></td></tr>` -> ['DCID', 'Freq']
    """
    tokens = []
    _walk_row(row, excluded, tokens)
    return tokens


def _walk_row(node: Tag, excluded: frozenset[str], tokens: list[str]) -> None:
    for child in node.children:
        if isinstance(child, Tag):
            _walk_row(child, excluded, tokens)
            data = child.name
        elif isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
            data = str(child)
        else:
            continue

        data = data.strip()
        if data == "" or data in excluded:
            continue
        tokens.append(data)


def iter_row_groups(
    soup: BeautifulSoup,
    group_tag: str = GROUP_TAG,
    row_tag: str = ROW_TAG,
    excluded: frozenset[str] = EXCLUDED_TAGS,
) -> Iterator[list[list[str]]]:
    """Yields the rows of every `group_tag` element in the document, in document order.

    Rows that have nothing left after extraction are not included.
    """
    for group in soup.find_all(group_tag):
        rows = []
        for row in group.find_all(row_tag):
            if tokens := extract_row(row, excluded):
                rows.append(tokens)
        yield rows


##
# Field decoding
##
def parse_uint(value: str, section: Section, field: str) -> int:
    """Unsigned, base 10, must fit in 64 bits. No signs, spaces or underscores."""
    if _UINT_RE.fullmatch(value) is None or int(value) > _UINT64_MAX:
        raise NumberFormatError(section.value, field, value)
    return int(value)


def parse_float(value: str, section: Section, field: str) -> float:
    if _FLOAT_RE.fullmatch(value) is None:
        raise NumberFormatError(section.value, field, value)
    result = float(value)
    # '1e400' silently becomes inf; only an explicit 'inf' is allowed to be infinite
    if math.isinf(result) and "inf" not in value.lower():
        raise NumberFormatError(section.value, field, value)
    return result


def parse_value_unit(
    token: str,
    section: Section,
    field: str,
    sentinels: dict[str, str] | None = None,
) -> float:
    """Decode cells like '591.0 MHz' or '2.1 dBmV'; the unit is thrown away.

    `sentinels` maps placeholder values to the value that should be parsed instead.
    """
    fields = token.split()
    if len(fields) != 2:
        raise UnitPairError(section.value, field, token)

    value = fields[0]
    if sentinels is not None:
        value = sentinels.get(value, value)
    return parse_float(value, section, field)


def parse_hardware_addr(value: str, section: Section = Section.INTERFACES) -> HardwareAddr:
    """Accepts 00:1d:d5:aa:bb:cc, 00-1d-d5-aa-bb-cc and 001d.d5aa.bbcc"""
    if len(value) == 17 and value[2] in ":-":
        octets = value.split(value[2])
    elif len(value) == 14 and value[4] == ".":
        groups = value.split(".")
        if len(groups) != 3 or any(len(g) != 4 for g in groups):
            raise HardwareAddrError(section.value, value)
        octets = [g[i : i + 2] for g in groups for i in (0, 2)]
    else:
        raise HardwareAddrError(section.value, value)

    if len(octets) != 6 or any(_HEX_BYTE_RE.fullmatch(o) is None for o in octets):
        raise HardwareAddrError(section.value, value)
    return HardwareAddr(bytes(int(o, 16) for o in octets))


##
# Section decoding
##
def _check_length(row: list[str], section: Section, expected: int) -> None:
    if len(row) != expected:
        raise RowLengthError(section.value, expected, row)


def decode_downstream(rows: list[list[str]]) -> list[Downstream]:
    """
    Each row looks like:
        ['Downstream 1', '1', '591.00 MHz', '2.10 dBmV', '38.61 dB', '256QAM', '3021473849', '110', '0']
    """
    section = Section.DOWNSTREAM
    channels = []
    for row in rows:
        _check_length(row, section, 9)
        channels.append(
            Downstream(
                name=row[0],
                dcid=parse_uint(row[1], section, "channel id"),
                frequency=parse_value_unit(row[2], section, "frequency"),
                power=parse_value_unit(row[3], section, "power"),
                snr=parse_value_unit(row[4], section, "snr"),
                modulation=row[5],
                octets=parse_uint(row[6], section, "octets"),
                corrected=parse_uint(row[7], section, "corrected"),
                uncorrectable=parse_uint(row[8], section, "uncorrectable"),
            )
        )
    return channels


def decode_upstream(rows: list[list[str]]) -> list[Upstream]:
    """
    Each row looks like:
        ['Upstream 1', '3', '30.60 MHz', '41.50 dBmV', 'DOCSIS2.0 (ATDMA)', '5120 kSym/s', '64QAM']

    Channels that are not in use show '---- kSym/s' (or similar) which we treat as zero.
    """
    section = Section.UPSTREAM
    channels = []
    for row in rows:
        _check_length(row, section, 7)
        symbol_rate = parse_value_unit(row[5], section, "symbol rate", UPSTREAM_SENTINELS)
        if not math.isfinite(symbol_rate):
            raise NumberFormatError(section.value, "symbol rate", row[5])
        channels.append(
            Upstream(
                name=row[0],
                ucid=parse_uint(row[1], section, "channel id"),
                frequency=parse_value_unit(row[2], section, "frequency", UPSTREAM_SENTINELS),
                power=parse_value_unit(row[3], section, "power", UPSTREAM_SENTINELS),
                channel_type=row[4],
                # Truncates, same as the modem's own display does
                symbol_rate=int(symbol_rate),
                modulation=row[6],
            )
        )
    return channels


def decode_uptime(row: list[str]) -> timedelta:
    """
    Row is the label and the value:
        ['System Uptime:', '0 d: 2 h: 43 m']
    """
    section = Section.SYSTEM_INFO
    _check_length(row, section, 2)

    # Every other field is a unit label
    fields = row[1].split()
    if len(fields) != 6:
        raise NumberFormatError(section.value, "uptime", row[1])

    days, hours, minutes = (parse_uint(fields[n], section, "uptime") for n in (0, 2, 4))
    return timedelta(days=days, hours=hours, minutes=minutes)


def decode_system_info(rows: list[list[str]]) -> list[timedelta]:
    """Only the uptime row is interesting.

    The rest of the system table (computers detected, CM status ... etc) is ignored.
    """
    uptimes = []
    for row in rows:
        if row[0] == UPTIME_LABEL:
            uptimes.append(decode_uptime(row))
    return uptimes


def decode_interfaces(rows: list[list[str]]) -> list[Interface]:
    """
    Each row looks like:
        ['LAN', 'Enabled', 'Up', '1000Mbps Full', '00:1d:d5:aa:bb:cc']
    """
    section = Section.INTERFACES
    interfaces = []
    for row in rows:
        _check_length(row, section, 5)
        speed = row[3]
        if speed == SPEED_SENTINEL:
            speed = SPEED_NOT_AVAILABLE
        interfaces.append(
            Interface(
                name=row[0],
                # Exact match on purpose; 'enabled' or 'UP' are false
                provisioned=row[1] == "Enabled",
                up=row[2] == "Up",
                speed=speed,
                mac=parse_hardware_addr(row[4], section),
            )
        )
    return interfaces


# Section -> (decoder, skip the header row?)
DECODERS: dict[Section, tuple[Callable[[list[list[str]]], list], bool]] = {
    Section.DOWNSTREAM: (decode_downstream, True),
    Section.UPSTREAM: (decode_upstream, True),
    # The first row of the system table is also the uptime row
    Section.SYSTEM_INFO: (decode_system_info, False),
    Section.INTERFACES: (decode_interfaces, True),
}


def classify(rows: list[list[str]]) -> Section:
    """Which section a group of rows is, based on the very first cell"""
    if len(rows) == 0 or len(rows[0]) == 0:
        raise NoRowsError()
    return SECTION_HEADERS.get(rows[0][0], Section.UNKNOWN)


def decode_group(rows: list[list[str]]) -> tuple[Section, list]:
    """Decode one group of rows. Unknown sections come back with no records."""
    section = classify(rows)
    if section is Section.UNKNOWN:
        log.debug("Skipping unrecognized section", header=rows[0][0], rows=len(rows))
        return section, []

    decoder, skip_header = DECODERS[section]
    data_rows = rows[1:] if skip_header else rows
    if len(data_rows) == 0:
        raise NoRowsError(section.value)

    records = decoder(data_rows)
    log.debug("Decoded section", section=section.value, count=len(records))
    return section, records


def parse(source: str | bytes | IO) -> Status:
    """Parse a full status page into a Status.

    The first malformed row aborts the whole parse; there's no such thing as a partial Status.
    """
    soup = BeautifulSoup(source, "html5lib")

    decoded: dict[Section, list] = {section: [] for section in Section}
    for rows in iter_row_groups(soup):
        section, records = decode_group(rows)
        decoded[section].extend(records)

    uptimes = decoded[Section.SYSTEM_INFO]
    status = Status(
        downstream=tuple(decoded[Section.DOWNSTREAM]),
        upstream=tuple(decoded[Section.UPSTREAM]),
        interfaces=tuple(decoded[Section.INTERFACES]),
        # Should only ever be one, but if not the last one wins
        uptime=uptimes[-1] if uptimes else timedelta(),
    )
    log.debug(
        "Parsed status",
        downstream=len(status.downstream),
        upstream=len(status.upstream),
        interfaces=len(status.interfaces),
        uptime=status.uptime,
    )
    return status
