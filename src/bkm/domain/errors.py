class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class NotFoundError(AppError):
    pass


class InsufficientStockError(AppError):
    pass


class ConsistencyError(AppError):
    """Operation would leave the ledger without a safe reversal."""


class PersistenceError(AppError):
    pass
