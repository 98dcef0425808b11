class InvalidInputError(ValueError):
    """Raised when a required input is missing or malformed."""


class DataFetchError(RuntimeError):
    """Raised when live market data cannot be fetched or parsed."""


class ConfigError(ValueError):
    """Raised when a configuration file cannot be loaded or validated."""
