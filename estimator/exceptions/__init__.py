"""Custom exceptions for the estimator application."""


class EstimatorError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class ValidationError(EstimatorError):
    """Raised for invalid caller input (bad row index, unconfirmed clear, ...)."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class NotFoundError(EstimatorError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class PersistenceError(EstimatorError):
    """A single create/update/delete against the store failed."""
    def __init__(self, message="Could not save changes", operation=None, payload=None):
        payload = dict(payload or ())
        if operation:
            payload['operation'] = operation
        super().__init__(message, 500, payload)
        self.operation = operation


class BatchPartialFailure(EstimatorError):
    """Some items of a batch operation failed; the rest were applied."""
    def __init__(self, operation, succeeded, attempted, failures):
        message = f"{operation}: {succeeded} of {attempted} item(s) succeeded"
        payload = {
            'operation': operation,
            'succeeded': succeeded,
            'attempted': attempted,
            'failures': [str(f) for f in failures],
        }
        super().__init__(message, 207, payload)
        self.operation = operation
        self.succeeded = succeeded
        self.attempted = attempted
        self.failures = list(failures)
