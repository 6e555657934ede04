"""
Mock Domain Store
=================
In-memory open-finance state served by the gateway tools.

Accounts and transactions are immutable seed data. Consent records are the
only mutable state: they are created or overwritten by ``grant_consent`` and
never deleted. A missing record means "inactive".

The consent map is guarded by a lock because the store is shared between
the event loop and any threadpool-executed callers.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, asdict
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

DEFAULT_CURRENCY = "CLP"
DEFAULT_CONSENT_DAYS = 30
DEFAULT_HORIZON_DAYS = 30

ConsentKey = Tuple[str, str, str]


@dataclass(frozen=True)
class ConsentRecord:
    resource: str
    scope: str
    active: bool
    expires_at: str


@dataclass(frozen=True)
class Account:
    id: str
    alias: str
    currency: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Transaction:
    account_id: str
    date: str  # ISO YYYY-MM-DD, fixed width so string order is date order
    amount: int  # positive = inflow, negative = outflow
    description: str


@dataclass(frozen=True)
class CashflowSummary:
    horizon_days: float
    inflows: int
    outflows: int
    net: int
    currency: str

    def to_dict(self) -> dict:
        horizon = self.horizon_days
        if isinstance(horizon, float) and horizon.is_integer():
            horizon = int(horizon)
        return {
            "horizonDays": horizon,
            "inflows": self.inflows,
            "outflows": self.outflows,
            "net": self.net,
            "currency": self.currency,
        }


SEED_ACCOUNTS: Dict[str, Tuple[Account, ...]] = {
    "cust-001": (
        Account(id="acc-001", alias="Cuenta Corriente", currency="CLP"),
        Account(id="acc-002", alias="Tarjeta Visa", currency="CLP"),
    ),
}

SEED_TRANSACTIONS: Dict[str, Tuple[Transaction, ...]] = {
    "cust-001": (
        Transaction("acc-001", "2025-10-01", 1150000, "Sueldo"),
        Transaction("acc-001", "2025-10-03", -180000, "Arriendo"),
        Transaction("acc-001", "2025-10-05", -45000, "Café y snacks"),
        Transaction("acc-001", "2025-10-12", -60000, "Internet y telefonía"),
    ),
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_days(value) -> float:
    """Numeric coercion for day counts; an explicit ``None`` counts as zero."""
    if value is None:
        return 0.0
    return float(value)


def _hashable(*parts) -> bool:
    try:
        hash(parts)
    except TypeError:
        return False
    return True


class MockDomainStore:
    """
    Owner and sole mutator of the mock domain entities.

    Args:
        accounts: customer id -> accounts (defaults to the seed data)
        transactions: customer id -> transactions (defaults to the seed data)
        clock: returns the current UTC datetime; injectable for tests
    """

    def __init__(
        self,
        accounts: Optional[Mapping[str, Sequence[Account]]] = None,
        transactions: Optional[Mapping[str, Sequence[Transaction]]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        source_accounts = SEED_ACCOUNTS if accounts is None else accounts
        source_txs = SEED_TRANSACTIONS if transactions is None else transactions
        self._accounts: Dict[str, Tuple[Account, ...]] = {
            k: tuple(v) for k, v in source_accounts.items()
        }
        self._transactions: Dict[str, Tuple[Transaction, ...]] = {
            k: tuple(v) for k, v in source_txs.items()
        }
        self._consents: Dict[ConsentKey, ConsentRecord] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def today(self) -> date:
        return self._clock().date()

    # --- Consent ---

    def get_consent(self, customer_id, resource, scope) -> Optional[ConsentRecord]:
        if not _hashable(customer_id, resource, scope):
            return None
        with self._lock:
            return self._consents.get((customer_id, resource, scope))

    def grant_consent(
        self, customer_id, resource, scope, duration_days=DEFAULT_CONSENT_DAYS
    ) -> ConsentRecord:
        """Upsert an active consent expiring ``duration_days`` from now."""
        days = _as_days(duration_days)
        expires_at = (self._clock() + timedelta(days=days)).date().isoformat()
        record = ConsentRecord(resource=resource, scope=scope, active=True, expires_at=expires_at)
        # unhashable keys can never be looked up again, so nothing is stored
        if _hashable(customer_id, resource, scope):
            with self._lock:
                self._consents[(customer_id, resource, scope)] = record
        return record

    # --- Accounts & transactions ---

    def list_accounts(self, customer_id) -> List[Account]:
        if not _hashable(customer_id):
            return []
        return list(self._accounts.get(customer_id, ()))

    def search_transactions(self, account_id, date_from, date_to) -> List[Transaction]:
        """
        Transactions of ``account_id`` dated within ``[date_from, date_to]``.

        Seed order is preserved. A missing or non-string bound matches nothing.
        """
        if not isinstance(date_from, str) or not isinstance(date_to, str):
            return []
        return [
            tx
            for txs in self._transactions.values()
            for tx in txs
            if tx.account_id == account_id and date_from <= tx.date <= date_to
        ]

    def compute_cashflow(self, customer_id, horizon_days=DEFAULT_HORIZON_DAYS) -> CashflowSummary:
        """
        Aggregate the customer's primary (first) account over the last
        ``horizon_days`` days, both ends inclusive, in UTC.
        """
        horizon = _as_days(horizon_days)
        if not _hashable(customer_id):
            customer_id = None
        accounts = self._accounts.get(customer_id, ())
        primary = accounts[0].id if accounts else None
        currency = accounts[0].currency if accounts else DEFAULT_CURRENCY

        now = self._clock()
        window_start = (now - timedelta(days=int(horizon))).date().isoformat()
        window_end = now.date().isoformat()

        in_window = [
            tx
            for tx in self._transactions.get(customer_id, ())
            if tx.account_id == primary and window_start <= tx.date <= window_end
        ]
        inflows = sum(tx.amount for tx in in_window if tx.amount > 0)
        outflows = -sum(tx.amount for tx in in_window if tx.amount < 0)

        return CashflowSummary(
            horizon_days=horizon,
            inflows=inflows,
            outflows=outflows,
            net=inflows - outflows,
            currency=currency,
        )
