"""Error taxonomy shared by the API, the merge engine and the client."""

from typing import Any, Dict, Optional


class BoardError(Exception):
    """Base class for every error the board core raises on purpose."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": type(self).__name__, "message": self.message}


class ValidationError(BoardError):
    """Malformed fragment, out-of-enum value or broken board invariant."""

    status_code = 422

    def __init__(self, message: str, path: str = "", expected: Optional[str] = None):
        super().__init__(message)
        self.path = path
        self.expected = expected

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["path"] = self.path
        data["expected"] = self.expected
        return data


class NotFoundError(BoardError):
    """Unknown board, block or column id."""

    status_code = 404


class AuthorizationError(BoardError):
    """The actor may not perform this operation on the board."""

    status_code = 403


class GenerationError(BoardError):
    """The storyboard image provider failed."""

    status_code = 502


ERRORS_BY_NAME = {
    cls.__name__: cls
    for cls in (ValidationError, NotFoundError, AuthorizationError, GenerationError)
}

ERRORS_BY_STATUS = {
    401: AuthorizationError,
    403: AuthorizationError,
    404: NotFoundError,
    422: ValidationError,
    502: GenerationError,
}
