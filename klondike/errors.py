"""
Exception types raised by the Klondike engine.

Illegal moves are not exceptions: they are reported as rejected move
results. The errors below cover configuration mistakes, corrupt remote
data and programming defects.
"""


class KlondikeError(Exception):
    """Base class for engine errors."""


class InvalidConfigurationError(KlondikeError, ValueError):
    """Raised when a game is configured with an unknown draw mode, a malformed
    seed or an invalid option. No state is installed when this is raised."""


class CorruptSnapshotError(KlondikeError):
    """Raised when a serialized snapshot cannot be parsed or fails the audit."""

    def __init__(self, message: str, report=None):
        super().__init__(message)
        self.report = report


class IntegrityViolationError(KlondikeError):
    """Raised when a command would leave the game without exactly 52 cards."""

    def __init__(self, message: str, report=None):
        super().__init__(message)
        self.report = report


class PendingActionLeakError(KlondikeError, RuntimeError):
    """Raised when a pending-action token is released twice or never issued."""
