"""Exception types raised by the Gladiator learning loop."""


class GladiatorError(Exception):
    """Base class for all Gladiator errors."""


class ConfigurationError(GladiatorError):
    """Raised when configuration is invalid or cannot be loaded."""


class ObservationValidationError(GladiatorError, ValueError):
    """Raised when observe input is malformed (short summary, unknown enum, bad shape)."""


class UnknownToolError(GladiatorError):
    """Raised when a caller asks for an operation that does not exist."""
