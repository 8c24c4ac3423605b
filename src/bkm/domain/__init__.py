from .models import ConsumedMaterial, InventoryItem, LedgerSnapshot, Partner, Transaction
from .ledger import Ledger
from .errors import (
    AppError,
    ConsistencyError,
    InsufficientStockError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

__all__ = [
    "ConsumedMaterial",
    "InventoryItem",
    "LedgerSnapshot",
    "Partner",
    "Transaction",
    "Ledger",
    "AppError",
    "ConsistencyError",
    "InsufficientStockError",
    "NotFoundError",
    "PersistenceError",
    "ValidationError",
]
