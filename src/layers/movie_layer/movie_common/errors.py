class AppError(Exception):
    """Base class for application errors."""

    def __init__(self, message, status_code=500, error_code="InternalError"):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code


class BadRequestError(AppError):
    def __init__(self, message, error_code="InvalidArgument"):
        super().__init__(message, 400, error_code)


class UnauthorizedError(AppError):
    def __init__(self, message="Unauthorized", error_code="Unauthorized"):
        super().__init__(message, 403, error_code)


class NotFoundError(AppError):
    def __init__(self, message="Movie not found", error_code="NotFound"):
        super().__init__(message, 404, error_code)


class StoreUnavailableError(AppError):
    """Transient store fault; the caller may retry."""

    def __init__(self, message="Store unavailable, try again later", error_code="StoreUnavailable"):
        super().__init__(message, 503, error_code)
