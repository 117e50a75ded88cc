"""Exceptions raised by the arena services.

Each class carries the HTTP status it maps to; the error handlers in
``arena.app`` turn any ``ArenaError`` into ``{"error": message}`` with that
status.
"""


class ArenaError(Exception):
    """Base exception for all arena errors."""

    status_code = 500

    def __init__(self, message: str = None):
        self.message = message or self.__class__.__doc__
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {'error': self.message}


class NotFound(ArenaError):
    """Resource not found"""

    status_code = 404


class ValidationError(ArenaError):
    """Invalid request payload"""

    status_code = 400


class Unauthorized(ArenaError):
    """Authentication required"""

    status_code = 401


class Forbidden(ArenaError):
    """Not allowed to perform this action"""

    status_code = 403


class Conflict(ArenaError):
    """Request conflicts with the current state"""

    status_code = 409


class AlreadyRegistered(Conflict):
    """Team already registered"""


class CapacityExceeded(Conflict):
    """Tournament is full"""


class RegistrationClosed(Conflict):
    """Tournament is not accepting registrations"""


class InvalidState(Conflict):
    """Invalid state transition"""
