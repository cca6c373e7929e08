"""
Domain exceptions raised by services and mapped to HTTP responses in app.main
"""


class QuizAppError(Exception):
    status_code = 500
    error_code = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(QuizAppError):
    status_code = 400
    error_code = "validation_error"


class NotFoundError(QuizAppError):
    status_code = 404
    error_code = "not_found"


class ConflictError(QuizAppError):
    status_code = 409
    error_code = "conflict"


class ProgressConflictError(ConflictError):
    error_code = "progress_conflict"


class DuplicateAttemptError(ConflictError):
    error_code = "duplicate_attempt"


class StatusTransitionError(ConflictError):
    error_code = "invalid_status_transition"


class PersistenceError(QuizAppError):
    status_code = 500
    error_code = "persistence_error"


class ExternalServiceError(QuizAppError):
    status_code = 502
    error_code = "external_service_error"
