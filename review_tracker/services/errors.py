"""Domain exceptions raised by the service layer."""


class ReviewTrackerError(Exception):
    """Base exception for service operations."""
    pass


class NotFoundError(ReviewTrackerError):
    """A referenced row does not exist."""
    pass


class ReviewNotFoundError(NotFoundError):
    pass


class StageNotFoundError(NotFoundError):
    pass


class AssignmentNotFoundError(NotFoundError):
    pass


class CommentNotFoundError(NotFoundError):
    pass


class UserNotFoundError(NotFoundError):
    pass


class TemplateNotFoundError(NotFoundError):
    pass


class ValidationError(ReviewTrackerError):
    """Input is missing a required value or is otherwise unusable."""
    pass
