"""Exceptions raised by the compliance screening core."""


class ComplianceError(Exception):
    """Base class for screening errors."""


class RetrievalError(ComplianceError):
    """The sanctions lookup was unavailable or returned an unusable answer.

    A check that ends in this error has an unknown outcome. It must never be
    reported as clean.
    """


class DataIntegrityError(ComplianceError):
    """Ownership data is malformed, e.g. an owner appears among its own owners."""

    def __init__(self, message: str, path_id: str = "") -> None:
        super().__init__(message)
        self.path_id = path_id


class ValidationError(ComplianceError):
    """A matcher was given a blank candidate name."""
