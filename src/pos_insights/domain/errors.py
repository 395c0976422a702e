class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class ConfigError(AppError):
    pass


class SnapshotError(AppError):
    pass
