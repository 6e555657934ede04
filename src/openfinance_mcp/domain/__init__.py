"""
Mock Domain
===========
In-memory data served by the gateway tools.
"""

from .store import (
    Account,
    CashflowSummary,
    ConsentRecord,
    MockDomainStore,
    Transaction,
)

__all__ = [
    "Account",
    "CashflowSummary",
    "ConsentRecord",
    "MockDomainStore",
    "Transaction",
]
