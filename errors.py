"""
Error taxonomy for the Classroom integration.

Every failure the user can see is one of these. None of them escape the
controller or the HTTP handler; they are turned into short feedback text.
"""


class ClassroomError(Exception):
    """Base class for all errors raised by this project."""


class AuthError(ClassroomError):
    """Sign-in or grant failed. The session returns to unauthenticated."""


class ValidationError(ClassroomError):
    """A request was rejected locally, before any network call."""


class TransportError(ClassroomError):
    """A remote Classroom call was rejected or could not be completed."""
