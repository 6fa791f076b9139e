"""Exception types raised by the mood tracker core."""


class MoodTrackerError(Exception):
    """Base class for all mood tracker errors."""


class ConfigError(MoodTrackerError, ValueError):
    """Invalid tunable passed at construction time (never silently clamped)."""


class SessionStateError(MoodTrackerError):
    """Requested session transition is not valid from the current status."""


class PrivacyError(MoodTrackerError):
    """Privacy gate misuse: double noising or un-noised outbound data."""
