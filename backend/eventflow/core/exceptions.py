from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from eventflow.schemas.conflict import ConflictData


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str | None = None):
        if resource_id is None:
            message = f"{resource_type} not found"
        else:
            message = f"{resource_type} with id {resource_id} not found"
        super().__init__(message, status_code=404)


class BusinessRuleError(AppError):
    """Raised when a request is well formed but breaks a domain rule."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)


class ResponsibleRegistryError(BusinessRuleError):
    def __init__(self):
        super().__init__("A user cannot register in an activity they are responsible for")


class AlreadyRegisteredError(BusinessRuleError):
    def __init__(self):
        super().__init__("This user is already registered")


class ArchivedEventError(BusinessRuleError):
    def __init__(self, message: str = "Registrations of archived events cannot be removed"):
        super().__init__(message)


class InvisibleEventError(BusinessRuleError):
    def __init__(self, message: str = "The event is not visible"):
        super().__init__(message)


class OutsideRegistryWindowError(BusinessRuleError):
    def __init__(self, message: str = "Registrations are not open for this event"):
        super().__init__(message)


class EventChangeRestrictionError(BusinessRuleError):
    def __init__(self):
        super().__init__("Activity's event cannot be changed")


class IncompleteActivityError(BusinessRuleError):
    def __init__(self, message: str = "The activity is not finished yet"):
        super().__init__(message)


class ActivityDeleteHasRegistryError(BusinessRuleError):
    def __init__(self):
        super().__init__("This activity has registered users")


class ActivityDeleteIsHappeningError(BusinessRuleError):
    def __init__(self):
        super().__init__("The event of this activity is happening")


class UnconfirmedUsersError(BusinessRuleError):
    def __init__(self, missing_ids: list[str]):
        super().__init__(
            "Some users do not exist or are not active",
            details={"user_ids": missing_ids},
        )


class SchedulesRequiredError(BusinessRuleError):
    def __init__(self):
        super().__init__("An activity needs at least one schedule")


class ResponsibleUsersRequiredError(BusinessRuleError):
    def __init__(self):
        super().__init__("At least one responsible user is required")


class InvalidScheduleError(BusinessRuleError):
    def __init__(self, message: str = "A schedule needs either a room or a link, but not both"):
        super().__init__(message)


class EndDateBeforeStartDateError(BusinessRuleError):
    def __init__(self):
        super().__init__("Event is being assigned with end date before start date")


class RegistryEndDateBeforeStartDateError(BusinessRuleError):
    def __init__(self):
        super().__init__("Event registry is being assigned with end date before start date")


class CertificateNotReadyError(BusinessRuleError):
    def __init__(self):
        super().__init__("Event is not ready for certificate")


class DateConflictError(BusinessRuleError):
    """Raised when schedules overlap; carries one entry per offending schedule."""
    def __init__(self, message: str, data: list[ConflictData]):
        super().__init__(message)
        self.status_code = 409
        self.data = data
