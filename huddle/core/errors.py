"""
Error taxonomy shared by every mutation handler.

Services raise these; main.py renders them as
{"success": false, "code": ..., "error": ...}.
"""

from fastapi import HTTPException, status


class ActionError(HTTPException):
    code = "error"
    status_code_default = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str, code: str = None):
        super().__init__(status_code=self.status_code_default, detail=detail)
        if code:
            self.code = code


class Unauthenticated(ActionError):
    code = "unauthenticated"
    status_code_default = status.HTTP_401_UNAUTHORIZED

    def __init__(self, detail: str = "Login required"):
        super().__init__(detail)


class NotAMember(ActionError):
    code = "not_a_member"
    status_code_default = status.HTTP_403_FORBIDDEN

    def __init__(self, detail: str = "You are not a member of this group"):
        super().__init__(detail)


class Forbidden(ActionError):
    code = "forbidden"
    status_code_default = status.HTTP_403_FORBIDDEN


class ValidationFailed(ActionError):
    code = "validation"
    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY


class NotFound(ActionError):
    code = "not_found"
    status_code_default = status.HTTP_404_NOT_FOUND


class RuleViolation(ActionError):
    """Business rule violated before the write (capacity, deadline, duplicate)."""
    code = "conflict"
    status_code_default = status.HTTP_409_CONFLICT


class UpstreamFailure(ActionError):
    """Datastore/storage/push error; the collaborator's detail is logged, not returned."""
    code = "upstream"
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
