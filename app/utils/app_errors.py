"""Application error types rendered by the API error handler."""

import inspect
from enum import Enum, IntEnum
from uuid import uuid4


class AppErrorCode(str, Enum):
    E_INVALID_PARAMS = "E_INVALID_PARAMS"
    E_INTERNAL_ERROR = "E_INTERNAL_ERROR"
    E_RECORDING_NOT_FOUND = "E_RECORDING_NOT_FOUND"
    E_RECORDING_LIST_FAILED = "E_RECORDING_LIST_FAILED"
    E_STORAGE_NOT_CONFIGURED = "E_STORAGE_NOT_CONFIGURED"

    def __str__(self) -> str:
        return self.value


class HttpStatusCode(IntEnum):
    BAD_REQUEST = 400
    NOT_FOUND = 404
    UNPROCESSABLE_ENTITY = 422
    INTERNAL_ERROR = 500


class AppError(Exception):
    """Raised anywhere below a router to produce a structured failure response.

    The caller location is captured at raise time so the handler can log where
    the error originated rather than where it was rendered.
    """

    def __init__(
        self,
        errcode: AppErrorCode | str,
        error: str,
        status_code: int = HttpStatusCode.BAD_REQUEST,
    ) -> None:
        self.errcode = str(errcode)
        self.error = error
        self.status_code = int(status_code)
        self.erresid = uuid4().hex[:10]

        # Skip frames of this module so subclasses report their raiser
        frame = inspect.currentframe()
        while frame is not None and frame.f_globals.get("__name__") == __name__:
            frame = frame.f_back
        if frame is not None:
            module_name = frame.f_globals.get("__name__", frame.f_code.co_filename)
            self.caller_info = f"{module_name}:{frame.f_code.co_name}:{frame.f_lineno}"
        else:
            self.caller_info = "unknown"

        super().__init__(error)


class RecordingNotFoundError(AppError):
    def __init__(self, filename: str) -> None:
        super().__init__(
            errcode=AppErrorCode.E_RECORDING_NOT_FOUND,
            error="Recording not found",
            status_code=HttpStatusCode.NOT_FOUND,
        )
        self.filename = filename


class RecordingListError(AppError):
    def __init__(self) -> None:
        super().__init__(
            errcode=AppErrorCode.E_RECORDING_LIST_FAILED,
            error="Unable to read recordings",
            status_code=HttpStatusCode.INTERNAL_ERROR,
        )
