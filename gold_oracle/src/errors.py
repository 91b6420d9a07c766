"""Exception taxonomy for the gold price oracle.

Every failure that can end an update cycle derives from :class:`OracleError`
so callers (the periodic loop, the HTTP routes and the CLI) can catch the
expected failure modes with a single ``except`` clause.
"""


class OracleError(Exception):
    """Base exception for oracle errors."""

    pass


class FetchError(OracleError):
    """Raised when the quote source is unreachable or returns an invalid body.

    Fetch errors are transient and retried by the orchestrator.

    :ivar status_code: HTTP status code, if the upstream responded.
    """

    def __init__(self, message: str, status_code: int | None = None):
        """Initialize the fetch error.

        :param message: Error message.
        :param status_code: Optional HTTP status code from the upstream.
        """
        self.status_code = status_code
        super().__init__(message)


class InvalidQuoteError(OracleError):
    """Raised when a quote cannot be converted to on-chain prices."""

    pass


class LedgerReadError(OracleError):
    """Raised when the on-chain record cannot be read or is malformed."""

    pass


class SubmissionError(OracleError):
    """Raised when an on-chain write fails (estimate, send, revert, timeout)."""

    pass


class ConfigurationError(OracleError):
    """Raised when required settings are missing or invalid."""

    pass
