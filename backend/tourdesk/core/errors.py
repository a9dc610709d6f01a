"""Domain errors raised by services and mapped to HTTP responses by the app."""


class DomainError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(DomainError):
    def __init__(self, message: str):
        super().__init__(message, 404)


class ForbiddenError(DomainError):
    def __init__(self, message: str):
        super().__init__(message, 403)


class ConflictError(DomainError):
    def __init__(self, message: str):
        super().__init__(message, 409)
