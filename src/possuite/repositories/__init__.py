from .ledger_store import LedgerStore, MemoryLedgerStore, SqliteLedgerStore
from .unit_of_work import LedgerUnitOfWork

__all__ = [
    "LedgerStore",
    "MemoryLedgerStore",
    "SqliteLedgerStore",
    "LedgerUnitOfWork",
]
