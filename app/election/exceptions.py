"""
Custom Exceptions for the election app.

Every error carries the HTTP status it is reported with
and a human readable message that is safe to send over the wire.
"""


class ElectionError(Exception):
    """Base class for election exceptions"""

    status_code = 500
    default_message = "Election error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return self.__class__.__name__

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


class ValidationError(ElectionError):
    status_code = 400
    default_message = "All fields are required"


class AuthError(ElectionError):
    status_code = 401
    default_message = "Authentication failed. Please login again."


class PermissionDeniedError(ElectionError):
    status_code = 403
    default_message = "You are not allowed to perform this action"


class NotFoundError(ElectionError):
    status_code = 404
    default_message = "Not found"


class VotingClosedError(ElectionError):
    status_code = 400
    default_message = "Voting is not in progress"


class VotingInProgressError(ElectionError):
    status_code = 409
    default_message = "Voting is already in progress"


class AlreadyVotedError(ElectionError):
    status_code = 403
    default_message = "You have already cast your vote"


class DuplicateVoteError(ElectionError):
    status_code = 409
    default_message = "You have already voted for this post"


class InvalidCandidateError(ElectionError):
    status_code = 400
    default_message = "Candidate does not belong to this post"


class ConfigError(ElectionError):
    status_code = 400
    default_message = "No posts configured"


class StorageError(ElectionError):
    status_code = 500
    default_message = "The operation could not be stored, please try again"
