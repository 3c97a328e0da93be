from typing import List, Optional

__all__ = ["MenuError", "ValidationError", "Unauthorized", "NotFound", "StorageUnavailable",
           "PartialMutation", "UploadFailed"]


class MenuError(Exception):
    STATUS_CODE = 500
    LEVEL = 'exception'


# Validation exceptions
class ValidationError(MenuError):
    STATUS_CODE = 400
    LEVEL = 'warning'


class Unauthorized(MenuError):
    STATUS_CODE = 401
    LEVEL = 'warning'


# DynamoDB exceptions
class NotFound(MenuError):
    STATUS_CODE = 404
    LEVEL = 'info'


class StorageUnavailable(MenuError):
    STATUS_CODE = 503
    LEVEL = 'error'


class PartialMutation(MenuError):
    """
    A multi-step mutation stopped after some of its steps were applied.
    Nothing is rolled back, the already applied part stays in the table
    """
    STATUS_CODE = 500
    LEVEL = 'error'

    def __init__(self, message: str, operation: str, completed_steps: List[str] = None,
                 failed_step: Optional[str] = None, applied: List[str] = None):
        super().__init__(message)
        self.operation = operation
        self.completed_steps = list(completed_steps or [])
        self.failed_step = failed_step
        self.applied = list(applied or [])

    def to_dict(self):
        return {
            'operation': self.operation,
            'completed_steps': self.completed_steps,
            'failed_step': self.failed_step,
            'applied': self.applied
        }


# S3 exceptions
class UploadFailed(MenuError):
    STATUS_CODE = 502
    LEVEL = 'error'
