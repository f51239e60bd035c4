class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ValidationFailure(AppError):
    """Raised when generation prerequisites are not met.

    ``details`` carries the full validation result (``valid``, ``errors``,
    ``warnings`` and ``unassignedCourses``) so callers can drive remediation.
    """
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)

    @property
    def unassigned_courses(self) -> list[dict]:
        return list(self.details.get("unassignedCourses", []))

    @property
    def errors(self) -> list[str]:
        return list(self.details.get("errors", []))

class PreconditionError(AppError):
    """Raised when generation options reference data that does not fit the request."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resourceType": resource_type, "resourceId": resource_id},
        )

class ProposalStateError(AppError):
    """Raised when a proposal transition is not allowed from its current status."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)

class ScheduleConflictError(AppError):
    """Raised when a proposal collides with the live schedule at apply time."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)

class ApplyTransactionError(AppError):
    """Raised when committing a proposal to the live schedule fails."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=500, details=details)
