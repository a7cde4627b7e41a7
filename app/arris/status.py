"""
Typed records for everything we pull out of the modem's status page.

Status is built once per parse and never mutated afterwards; the collections are tuples for that reason.
"""

from dataclasses import dataclass, field
from datetime import timedelta


class HardwareAddr(bytes):
    """6 byte MAC address. Renders as the usual lowercase, colon separated hex."""

    def __str__(self) -> str:
        return ":".join(f"{b:02x}" for b in self)

    def __repr__(self) -> str:
        return f"HardwareAddr('{self}')"


@dataclass(frozen=True)
class Downstream:
    """One downstream (modem <- head-end) channel."""

    name: str
    dcid: int
    # MHz
    frequency: float
    # dBmV
    power: float
    # dB
    snr: float
    modulation: str
    octets: int
    corrected: int
    uncorrectable: int


@dataclass(frozen=True)
class Upstream:
    """One upstream (modem -> head-end) channel."""

    name: str
    ucid: int
    # MHz
    frequency: float
    # dBmV
    power: float
    channel_type: str
    # kSym/s; the collector scales this to sym/s
    symbol_rate: int
    modulation: str


@dataclass(frozen=True)
class Interface:
    """A network interface on the modem (LAN, MTA, CABLE ... etc)."""

    name: str
    # TODO: the page shows 'Enabled'/'Disabled' and 'Up'/'Down'; a string might be more appropriate than bool
    #   if other values ever show up.
    provisioned: bool
    up: bool
    speed: str
    mac: HardwareAddr


@dataclass(frozen=True)
class Status:
    """Everything we could decode from a single status page."""

    downstream: tuple[Downstream, ...] = ()
    upstream: tuple[Upstream, ...] = ()
    interfaces: tuple[Interface, ...] = ()
    uptime: timedelta = field(default_factory=timedelta)
