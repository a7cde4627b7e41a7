"""Simple wrappers for the failure states we can hit while fetching and decoding the status page"""


class ParseError(Exception):
    """Base exception for anything that goes wrong turning status page rows into records.

    `section` is the name of the section being decoded when the failure happened.
    """

    def __init__(self, message, section=None, detail=None):
        super().__init__(message)
        self.section = section
        self.detail = detail

    def __str__(self):
        if self.section is None:
            return f"arris: {self.args[0]}"
        return f"arris: {self.section}: {self.args[0]}"


class RowLengthError(ParseError):
    """Row did not have the number of tokens the section requires."""

    def __init__(self, section, expected, row):
        super().__init__(
            f"incorrect number of row elements: expected {expected}, got {len(row)}: {row!r}",
            section=section,
            detail=row,
        )
        self.expected = expected


class NumberFormatError(ParseError):
    """A numeric field could not be parsed."""

    def __init__(self, section, field, value):
        super().__init__(f"malformed {field}: {value!r}", section=section, detail=value)
        self.field = field


class UnitPairError(ParseError):
    """A "value unit" field did not split into exactly two parts."""

    def __init__(self, section, field, value):
        super().__init__(
            f"malformed {field} value/unit pair: {value!r}", section=section, detail=value
        )
        self.field = field


class HardwareAddrError(ParseError):
    """Interface MAC address could not be parsed."""

    def __init__(self, section, value):
        super().__init__(f"malformed hardware address: {value!r}", section=section, detail=value)


class NoRowsError(ParseError):
    """Group of rows had nothing to decode."""

    def __init__(self, section=None):
        super().__init__("no status rows available to parse", section=section)


class ModemNotOkError(Exception):
    """Exception for non-200/OK responses from modem."""

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message, status_code, payload)
        self.status_code = status_code

    def __str__(self):
        return self.args[0]


class CollectError(Exception):
    """Metrics could not be collected for a device; wraps the underlying fetch/parse failure."""

    def __init__(self, metric_name, cause):
        super().__init__(f"error collecting metric {metric_name}: {cause}")
        self.metric_name = metric_name
        self.cause = cause
