from .finance import (
    CategoryModel,
    CategoryPatternModel,
    LedgerModel,
    RecurringPatternModel,
    TransactionModel,
)

__all__ = [
    "CategoryModel",
    "CategoryPatternModel",
    "LedgerModel",
    "RecurringPatternModel",
    "TransactionModel",
]
