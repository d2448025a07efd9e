class CloudLogError(Exception):
    """
    Base error for the logging façade.

    backend names the remote backend involved, reason is the
    human-readable cause, details carries the underlying error text.
    """

    def __init__(self, backend, reason, details=None):
        self.backend = backend
        self.reason = reason
        self.details = details
        super().__init__(reason)


class BackendUnavailableError(CloudLogError):
    """No remote client could be acquired (credentials, connectivity, bad identity)."""


class ConfigError(ValueError):
    """A configuration value is missing or malformed."""
