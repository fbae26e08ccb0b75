# app/core/exceptions.py

"""Domain errors raised by the role engine.

Every error is a local validation failure detected before any write, so none
of them are retried. ``app.main`` turns them into JSON responses.
"""


class RoleEngineError(Exception):
    status_code: int = 400
    default_message: str = "Request could not be completed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthorizedError(RoleEngineError):
    status_code = 403
    default_message = "You do not have permission to do this"


class RoleNotFoundError(RoleEngineError):
    # Same message whether the role is missing or belongs to another store.
    status_code = 404
    default_message = "Role not found"


class ProfileNotFoundError(RoleEngineError):
    status_code = 404
    default_message = "Profile not found"


class ImmutableRoleError(RoleEngineError):
    status_code = 409
    default_message = "System roles cannot be changed or deleted"


class InvalidAssignmentError(RoleEngineError):
    status_code = 400
    default_message = "This role cannot be assigned to this profile"


class SelfDemotionError(RoleEngineError):
    status_code = 400
    default_message = "You cannot remove your own admin permission"


class IneligibleClassError(RoleEngineError):
    status_code = 400
    default_message = "Only staff members can be given admin permission"


class RoleValidationError(RoleEngineError):
    status_code = 422
    default_message = "Invalid role data"


class RoleEditingError(RoleEngineError):
    status_code = 409
    default_message = "The role editor is not in a state that allows this"
