"""All the boiler plate for turning a parsed Status into prometheus metrics.

Unlike a long-running poller, every scrape is for a (possibly different) modem so the device metrics are not
    module level Gauge/Counter objects. Instead, StatusCollector is handed the freshly parsed Status and yields
    const metric families from it; the handler registers it in a throwaway registry for each request.

The meta metrics ARE module level; they describe the exporter itself and accumulate across scrapes.
"""

from collections.abc import Iterator

from err.exceptions import CollectError
from prometheus_client import Counter, Summary, disable_created_metrics
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from arris.status import Status

# By default, client will automatically create a "_created" meta metric for
#   each metric defined below.
# Having the unix epoch time of when the metric was created isn't that useful for us
#   so we'll disable it.
disable_created_metrics()

METRICS_NS = "arris"
META_NS = "meta"

# Fetch/parse failures are reported against this metric
UPTIME_METRIC = f"{METRICS_NS}_uptime_seconds"

##
# Meta Metrics
##
# Not attached to the default registry; the handler adds them to each per-request registry so they show
#   up next to the device metrics.
##
# summary comes with both a count and a sum so we don't need to count the number of scrapes ourselves
s_meta_scrape_time = Summary(
    f"{META_NS}_request_duration_seconds",
    "Time spent waiting for modem to respond",
    registry=None,
)

# Count of successful vs failed fetches. Not labelled by target; the target comes straight from the
#   scrape request so it could be anything.
c_meta_scrape_result = Counter(
    f"{META_NS}_scrape_result",
    "Count of successful vs failed scrapes",
    labelnames=["http_code"],
    registry=None,
)

# Time to parse returned HTML isn't interesting but am interested in parse errors
c_meta_parse_result = Counter(
    f"{META_NS}_parse_result",
    "Count of successful vs failed parse attempts",
    labelnames=["parse_result"],
    registry=None,
)

META_METRICS = (s_meta_scrape_time, c_meta_scrape_result, c_meta_parse_result)


class StatusCollector(Collector):
    """Yields the metrics for a single modem.

    Exactly one of `status` / `error` must be given. If the modem could not be scraped, collection raises
    CollectError so the scrape fails as a whole instead of returning a partial set of metrics.
    """

    def __init__(self, status: Status | None = None, error: Exception | None = None):
        if (status is None) == (error is None):
            raise ValueError("exactly one of status or error is required")
        self.status = status
        self.error = error

    def describe(self) -> list[Metric]:
        # Keeps the registry from calling collect() at register time
        return []

    def collect(self) -> Iterator[Metric]:
        if self.error is not None:
            raise CollectError(UPTIME_METRIC, self.error)

        yield GaugeMetricFamily(
            UPTIME_METRIC,
            "Device uptime in seconds.",
            value=self.status.uptime.total_seconds(),
        )
        yield from self._collect_downstream()
        yield from self._collect_upstream()
        yield from self._collect_interfaces()

    def _collect_downstream(self) -> Iterator[Metric]:
        power = GaugeMetricFamily(
            f"{METRICS_NS}_downstream_power_dbmv",
            "Current power level for the downstream connection in dBmV.",
            labels=["name"],
        )
        # CounterMetricFamily takes care of the _total suffix
        octets = CounterMetricFamily(
            f"{METRICS_NS}_downstream_bytes",
            "Number of downstream bytes total.",
            labels=["name"],
        )
        corrected = CounterMetricFamily(
            f"{METRICS_NS}_downstream_corrected_symbols",
            "Number of downstream corrected symbols total.",
            labels=["name"],
        )
        uncorrectable = CounterMetricFamily(
            f"{METRICS_NS}_downstream_uncorrectable_symbols",
            "Number of downstream uncorrectable symbols total.",
            labels=["name"],
        )

        for ch in self.status.downstream:
            power.add_metric([ch.name], ch.power)
            octets.add_metric([ch.name], float(ch.octets))
            corrected.add_metric([ch.name], float(ch.corrected))
            uncorrectable.add_metric([ch.name], float(ch.uncorrectable))

        yield from (power, octets, corrected, uncorrectable)

    def _collect_upstream(self) -> Iterator[Metric]:
        power = GaugeMetricFamily(
            f"{METRICS_NS}_upstream_power_dbmv",
            "Current power level for the upstream connection in dBmV.",
            labels=["name"],
        )
        symbol_rate = GaugeMetricFamily(
            f"{METRICS_NS}_upstream_symbols_per_second",
            "Current symbol rate for the upstream connection in symbols per second.",
            labels=["name"],
        )

        for ch in self.status.upstream:
            power.add_metric([ch.name], ch.power)
            # kSym/s -> sym/s; float math so an absurd rate comes out as +Inf
            symbol_rate.add_metric([ch.name], ch.symbol_rate * 1000.0)

        yield from (power, symbol_rate)

    def _collect_interfaces(self) -> Iterator[Metric]:
        info = GaugeMetricFamily(
            f"{METRICS_NS}_interfaces_info",
            "Information about an interface.",
            labels=["name", "speed", "mac"],
        )
        provisioned = GaugeMetricFamily(
            f"{METRICS_NS}_interfaces_provisioned",
            "Whether or not a network interface is provisioned (0 - false, 1 - true).",
            labels=["name"],
        )
        up = GaugeMetricFamily(
            f"{METRICS_NS}_interfaces_up",
            "Whether or not a network interface is up (0 - false, 1 - true).",
            labels=["name"],
        )

        for ifi in self.status.interfaces:
            info.add_metric([ifi.name, ifi.speed, str(ifi.mac)], 1.0)
            provisioned.add_metric([ifi.name], 1.0 if ifi.provisioned else 0.0)
            up.add_metric([ifi.name], 1.0 if ifi.up else 0.0)

        yield from (info, provisioned, up)
