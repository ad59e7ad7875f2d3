"""
Domain errors for the session lifecycle and connection graph.

Services raise these; the API layer renders them as
``{"detail": message, "error": code}`` with the mapped HTTP status.
"""


class SkillSwapError(Exception):
    """Base class for expected, recoverable domain failures."""

    code = "Error"
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(SkillSwapError):
    code = "NotFound"
    status_code = 404


class ForbiddenError(SkillSwapError):
    code = "Forbidden"
    status_code = 403


class InvalidStateError(SkillSwapError):
    code = "InvalidState"
    status_code = 409


class IneligibleSkillError(SkillSwapError):
    code = "IneligibleSkill"
    status_code = 400


class SelfBookingForbiddenError(SkillSwapError):
    code = "SelfBookingForbidden"
    status_code = 400


class OutsideScheduleWindowError(SkillSwapError):
    code = "OutsideScheduleWindow"
    status_code = 403


class InputValidationError(SkillSwapError):
    code = "ValidationError"
    status_code = 422
