class ConfigError(RuntimeError):
    """Raised at start-up when a catalog or knowledge-base file cannot be used."""


class SummarySourceError(RuntimeError):
    """Raised by a summary source when live app data cannot be fetched."""
