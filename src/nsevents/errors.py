class EventsError(Exception):
    """Base error for nsevents exceptions."""


class ConfigError(EventsError):
    """Raised when emitter configuration cannot be parsed or is out of range."""
