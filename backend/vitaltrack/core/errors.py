"""Error taxonomy shared by the core and the shell.

Each error carries the HTTP status the API layer maps it to.
"""


class VitalTrackError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(VitalTrackError):
    """Malformed id, out-of-range biometric or non-positive water amount."""

    status_code = 400


class UserNotFoundError(VitalTrackError):
    """The referenced user does not exist."""

    status_code = 404

    def __init__(self, user_id: int) -> None:
        super().__init__("User not found")
        self.user_id = user_id


class StorageFailure(VitalTrackError):
    """A repository read, append or update could not complete."""

    status_code = 500


class GeneratorFailure(VitalTrackError):
    """The recommendation generator produced no usable content.

    Raised and caught inside the generator only, so it never reaches the
    HTTP layer and carries no status of its own; callers receive fallback
    content instead.
    """
