class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class NotFoundError(AppError):
    pass


class BackendUnavailableError(AppError):
    """A catalog or transaction snapshot could not be fetched."""
