"""
Tests for the mock open-finance store.
"""

from datetime import datetime, timezone

import pytest

from openfinance_mcp.domain.store import (
    Account,
    CashflowSummary,
    MockDomainStore,
    Transaction,
)


class TestConsent:
    def test_missing_consent_is_none(self, store):
        assert store.get_consent("cust-001", "accounts", "read") is None

    def test_grant_then_status(self, store):
        record = store.grant_consent("cust-001", "accounts", "read", 30)
        assert record.active is True
        assert record.expires_at == "2025-11-30"
        assert store.get_consent("cust-001", "accounts", "read") == record

    def test_grant_overwrites_previous_record(self, store):
        store.grant_consent("cust-001", "accounts", "read", 30)
        store.grant_consent("cust-001", "accounts", "read", 1)
        assert store.get_consent("cust-001", "accounts", "read").expires_at == "2025-11-01"

    def test_grant_is_keyed_by_full_triple(self, store):
        store.grant_consent("cust-001", "accounts", "read", 30)
        assert store.get_consent("cust-001", "accounts", "write") is None
        assert store.get_consent("cust-002", "accounts", "read") is None

    def test_fractional_duration(self, store):
        # 12:00 + 0.5 days lands on the next calendar day
        record = store.grant_consent("cust-001", "tx", "read", 0.5)
        assert record.expires_at == "2025-11-01"

    def test_null_duration_expires_today(self, store):
        record = store.grant_consent("cust-001", "tx", "read", None)
        assert record.expires_at == "2025-10-31"

    def test_unhashable_keys_are_never_found(self, store):
        record = store.grant_consent(["cust-001"], "tx", {"scope": "read"}, 30)
        assert record.expires_at == "2025-11-30"
        assert store.get_consent(["cust-001"], "tx", {"scope": "read"}) is None

    def test_non_numeric_duration_raises(self, store):
        with pytest.raises(ValueError):
            store.grant_consent("cust-001", "tx", "read", "soon")


class TestAccounts:
    def test_seed_accounts_in_order(self, store):
        accounts = store.list_accounts("cust-001")
        assert [a.to_dict() for a in accounts] == [
            {"id": "acc-001", "alias": "Cuenta Corriente", "currency": "CLP"},
            {"id": "acc-002", "alias": "Tarjeta Visa", "currency": "CLP"},
        ]

    def test_unknown_customer_has_no_accounts(self, store):
        assert store.list_accounts("nobody") == []
        assert store.list_accounts(None) == []

    def test_unhashable_customer_has_no_accounts(self, store):
        assert store.list_accounts({"id": "cust-001"}) == []


class TestTransactionSearch:
    def test_october_statement(self, store):
        txs = store.search_transactions("acc-001", "2025-10-01", "2025-10-31")
        assert [t.date for t in txs] == ["2025-10-01", "2025-10-03", "2025-10-05", "2025-10-12"]
        assert sum(t.amount for t in txs) == 865000

    def test_bounds_are_inclusive(self, store):
        txs = store.search_transactions("acc-001", "2025-10-03", "2025-10-05")
        assert [t.description for t in txs] == ["Arriendo", "Café y snacks"]

    def test_empty_window(self, store):
        assert store.search_transactions("acc-001", "2025-10-13", "2025-10-31") == []

    def test_other_account_has_no_transactions(self, store):
        assert store.search_transactions("acc-002", "2025-01-01", "2025-12-31") == []

    def test_missing_bound_matches_nothing(self, store):
        assert store.search_transactions("acc-001", None, "2025-10-31") == []
        assert store.search_transactions("acc-001", "2025-10-01", None) == []

    def test_non_string_bound_matches_nothing(self, store):
        assert store.search_transactions("acc-001", 20251001, "2025-10-31") == []
        assert store.search_transactions("acc-001", "2025-10-01", ["2025-10-31"]) == []


class TestCashflow:
    def test_thirty_day_horizon(self, store):
        summary = store.compute_cashflow("cust-001", 30)
        assert summary.to_dict() == {
            "horizonDays": 30,
            "inflows": 1150000,
            "outflows": 285000,
            "net": 865000,
            "currency": "CLP",
        }

    def test_window_start_is_inclusive(self, store):
        # 2025-10-31 minus 29 days is 2025-10-02, so the salary drops out
        summary = store.compute_cashflow("cust-001", 29)
        assert summary.inflows == 0
        assert summary.outflows == 285000
        assert summary.net == -285000

    def test_zero_horizon_is_today_only(self, store):
        summary = store.compute_cashflow("cust-001", 0)
        assert (summary.inflows, summary.outflows, summary.net) == (0, 0, 0)

    def test_null_horizon_is_today_only(self, store):
        summary = store.compute_cashflow("cust-001", None)
        assert summary.to_dict()["horizonDays"] == 0
        assert (summary.inflows, summary.outflows) == (0, 0)

    def test_unhashable_customer_defaults_currency(self, store):
        summary = store.compute_cashflow(["cust-001"], 30)
        assert (summary.net, summary.currency) == (0, "CLP")

    def test_unknown_customer_defaults_currency(self, store):
        summary = store.compute_cashflow("nobody", 30)
        assert summary.currency == "CLP"
        assert summary.net == 0

    def test_only_primary_account_counts(self, fixed_clock):
        store = MockDomainStore(
            accounts={"c": (Account("a1", "main", "USD"), Account("a2", "card", "USD"))},
            transactions={
                "c": (
                    Transaction("a1", "2025-10-30", 100, "in"),
                    Transaction("a2", "2025-10-30", -999, "ignored"),
                )
            },
            clock=fixed_clock,
        )
        summary = store.compute_cashflow("c", 7)
        assert (summary.inflows, summary.outflows, summary.currency) == (100, 0, "USD")

    def test_fractional_horizon_is_echoed(self, store):
        assert store.compute_cashflow("cust-001", 7.5).to_dict()["horizonDays"] == 7.5


def test_cashflow_summary_integral_float_renders_as_int():
    summary = CashflowSummary(30.0, 1, 0, 1, "CLP")
    assert summary.to_dict()["horizonDays"] == 30
    assert isinstance(summary.to_dict()["horizonDays"], int)


def test_today_uses_injected_clock():
    store = MockDomainStore(clock=lambda: datetime(2024, 2, 29, 23, 59, tzinfo=timezone.utc))
    assert store.today().isoformat() == "2024-02-29"
