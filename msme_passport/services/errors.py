"""Business-rule failures raised by services and turned into HTTP errors by routers."""
from fastapi import HTTPException


class WorkflowError(Exception):
    def __init__(self, status_code: int, message: str, code: str | None = None, **extra):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code
        self.extra = extra

    @property
    def detail(self) -> str | dict:
        """Plain message, or message + machine code + context when a code is set."""
        if not self.code:
            return self.message
        return {"message": self.message, "error": self.code, **self.extra}

    def to_http(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.detail)
