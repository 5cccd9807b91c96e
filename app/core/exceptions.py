from typing import Any, Dict, List, Optional

class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

class ValidationError(AppException):
    """Rejected input, reported against a single field. Raised before any mutation."""
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message=message,
            status_code=422,
            error_code="VALIDATION_ERROR",
            details={"field": field} if field else None
        )
        self.field = field

class NotFoundError(AppException):
    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            message=f"{entity} {entity_id} not found",
            status_code=404,
            error_code="NOT_FOUND",
            details={"entity": entity, "id": entity_id}
        )

class AIError(AppException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=503,
            error_code="AI_SERVICE_UNAVAILABLE",
            details=details
        )

class AIKillSwitchError(AppException):
    def __init__(self):
        super().__init__(
            message="AI services are currently offline for maintenance.",
            status_code=503,
            error_code="AI_KILL_SWITCH_ACTIVE"
        )

class AuthenticationError(AppException):
    def __init__(self, message: str = "Could not identify the acting employee"):
        super().__init__(
            message=message,
            status_code=401,
            error_code="AUTH_FAILED"
        )

class AccessDeniedError(AppException):
    """Custom permission error. Named AccessDeniedError to avoid shadowing Python's built-in PermissionError."""
    def __init__(self, message: str = "Insufficient permissions", capability: Optional[str] = None):
        super().__init__(
            message=message,
            status_code=403,
            error_code="PERMISSION_DENIED",
            details={"capability": capability} if capability else None
        )

class SubmissionBlockedError(AppException):
    """One or more selected goals are past their deadline while late submissions are disabled."""
    def __init__(self, goal_names: List[str]):
        self.goal_names = list(goal_names)
        super().__init__(
            message=(
                "The following goal(s) have passed their deadline and late submissions are not allowed: "
                f"{', '.join(self.goal_names)}. Please deselect them or enable late submissions in settings."
            ),
            status_code=409,
            error_code="SUBMISSION_BLOCKED",
            details={"goals": self.goal_names}
        )
