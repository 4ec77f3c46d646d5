"""Tests for matching strategies and the strategy registry."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from ledger_recon.config import MatcherConfig
from ledger_recon.matching.strategies import (
    ExactMatchStrategy,
    MatchingStrategy,
    amounts_equal,
    available_strategies,
    get_strategy,
    register_strategy,
)
from ledger_recon.models.transaction import MatchResult, TransactionType
from ledger_recon.utils.exceptions import ConfigurationError

from tests.helpers import bank_txn, system_txn

DEBIT = TransactionType.DEBIT
CREDIT = TransactionType.CREDIT


def assert_partitioned(result, system_txns, bank_txns):
    """Every input appears exactly once across the partitions."""
    assert len(result.matched) + len(result.unmatched_system) == len(system_txns)
    assert len(result.matched) + len(result.unmatched_bank) == len(bank_txns)

    seen_system = [p.system_transaction for p in result.matched] + result.unmatched_system
    seen_bank = [p.bank_transaction for p in result.matched] + result.unmatched_bank
    assert sorted(map(id, seen_system)) == sorted(map(id, system_txns))
    assert sorted(map(id, seen_bank)) == sorted(map(id, bank_txns))


class TestExactMatchStrategy:
    def setup_method(self):
        self.matcher = ExactMatchStrategy()

    def test_name(self):
        assert self.matcher.name() == "exact"

    def test_sign_flipped_debit_matches(self):
        system = [system_txn("SYS001", "150.50", DEBIT)]
        bank = [bank_txn("BANK001", "-150.50", DEBIT)]

        result = self.matcher.match(system, bank)

        assert len(result.matched) == 1
        pair = result.matched[0]
        assert pair.confidence_score == 100.0
        assert pair.amount_discrepancy == Decimal("0")
        assert pair.system_transaction is system[0]
        assert pair.bank_transaction is bank[0]
        assert result.unmatched_system == []
        assert result.unmatched_bank == []

    def test_debit_and_credit_of_same_value_do_not_match(self):
        system = [system_txn("SYS001", "150.50", DEBIT)]
        bank = [bank_txn("BANK001", "150.50", CREDIT)]

        result = self.matcher.match(system, bank)

        assert result.matched == []
        assert result.unmatched_system == system
        assert result.unmatched_bank == bank

    def test_two_identical_bank_candidates_are_ambiguous(self):
        system = [system_txn("SYS001", "150.50", DEBIT)]
        bank = [
            bank_txn("BANK001", "-150.50", DEBIT, source="BCA"),
            bank_txn("BANK002", "-150.50", DEBIT, source="MANDIRI"),
        ]

        result = self.matcher.match(system, bank)

        assert result.matched == []
        assert result.unmatched_system == system
        assert result.unmatched_bank == bank

    def test_partial_match_statistics(self):
        system = [
            system_txn("SYS001", "150.50", DEBIT),
            system_txn("SYS002", "1000.00", CREDIT),
        ]
        bank = [bank_txn("BANK001", "-150.50", DEBIT)]

        result = self.matcher.match(system, bank)

        assert len(result.matched) == 1
        assert result.unmatched_system == [system[1]]
        assert result.unmatched_bank == []
        assert result.total_discrepancy == Decimal("1000.00")
        assert result.total_system_txns == 2
        assert result.total_bank_txns == 1
        assert result.total_matched == 1
        assert result.algorithm_used == "exact"

    def test_empty_inputs(self):
        result = self.matcher.match([], [])

        assert result.matched == []
        assert result.unmatched_system == []
        assert result.unmatched_bank == []
        assert result.match_rate == 100.0

    def test_several_exact_matches(self):
        system = [
            system_txn("SYS001", "150.50", DEBIT),
            system_txn("SYS002", "1000.00", CREDIT),
            system_txn("SYS003", "500.00", DEBIT, source="MANDIRI"),
        ]
        bank = [
            bank_txn("BANK003", "-500.00", DEBIT, source="MANDIRI"),
            bank_txn("BANK002", "1000.00", CREDIT),
            bank_txn("BANK001", "-150.50", DEBIT),
        ]

        result = self.matcher.match(system, bank)

        assert len(result.matched) == 3
        assert result.match_rate == 100.0
        assert result.total_discrepancy == Decimal("0")

    def test_date_mismatch(self):
        system = [system_txn("SYS001", "150.50", DEBIT, when=date(2024, 3, 15))]
        bank = [bank_txn("BANK001", "-150.50", DEBIT, when=date(2024, 3, 16))]

        result = self.matcher.match(system, bank)

        assert result.matched == []

    def test_amount_mismatch(self):
        system = [system_txn("SYS001", "150.50", DEBIT)]
        bank = [bank_txn("BANK001", "-150.75", DEBIT)]

        result = self.matcher.match(system, bank)

        assert result.matched == []
        assert result.total_discrepancy == Decimal("301.25")

    def test_time_of_day_is_ignored(self):
        system = [system_txn("SYS001", "150.50", DEBIT, when=datetime(2024, 3, 15, 18, 45))]
        bank = [bank_txn("BANK001", "-150.50", DEBIT, when=date(2024, 3, 15))]

        result = self.matcher.match(system, bank)

        assert len(result.matched) == 1

    def test_source_is_ignored(self):
        system = [system_txn("SYS001", "150.50", DEBIT, source="BCA")]
        bank = [bank_txn("BANK001", "-150.50", DEBIT, source="MANDIRI")]

        result = self.matcher.match(system, bank)

        assert len(result.matched) == 1

    def test_equal_value_written_differently_matches(self):
        system = [system_txn("SYS001", "150.5", DEBIT)]
        bank = [bank_txn("BANK001", "-150.500", DEBIT)]

        result = self.matcher.match(system, bank)

        assert len(result.matched) == 1

    def test_same_cents_but_beyond_epsilon_is_rejected(self):
        # Both round to 150.50 but differ by 0.004
        system = [system_txn("SYS001", "150.504", DEBIT)]
        bank = [bank_txn("BANK001", "-150.50", DEBIT)]

        result = self.matcher.match(system, bank)

        assert result.matched == []
        assert result.unmatched_system == system
        assert result.unmatched_bank == bank

    def test_sub_cent_noise_below_the_cent_matches(self):
        system = [system_txn("SYS001", "150.4999", DEBIT)]
        bank = [bank_txn("BANK001", "-150.50", DEBIT)]

        result = self.matcher.match(system, bank)

        assert len(result.matched) == 1
        assert result.matched[0].amount_discrepancy == Decimal("0.0001")

    def test_duplicate_system_records_consume_single_bank_record_once(self):
        system = [
            system_txn("SYS001", "150.50", DEBIT),
            system_txn("SYS002", "150.50", DEBIT),
        ]
        bank = [bank_txn("BANK001", "-150.50", DEBIT)]

        result = self.matcher.match(system, bank)

        assert len(result.matched) == 1
        assert result.matched[0].system_transaction is system[0]
        assert result.unmatched_system == [system[1]]
        assert result.unmatched_bank == []

    def test_two_by_two_identical_stays_unmatched(self):
        system = [
            system_txn("SYS001", "150.50", DEBIT),
            system_txn("SYS002", "150.50", DEBIT, source="MANDIRI"),
        ]
        bank = [
            bank_txn("BANK001", "-150.50", DEBIT),
            bank_txn("BANK002", "-150.50", DEBIT, source="MANDIRI"),
        ]

        result = self.matcher.match(system, bank)

        assert result.matched == []
        assert len(result.unmatched_system) == 2
        assert len(result.unmatched_bank) == 2

    def test_duplicate_bank_ids_across_files_are_tracked_separately(self):
        system = [
            system_txn("SYS001", "10.00", DEBIT),
            system_txn("SYS002", "20.00", DEBIT),
        ]
        bank = [
            bank_txn("ROW1", "-10.00", DEBIT, source="BCA"),
            bank_txn("ROW1", "-20.00", DEBIT, source="MANDIRI"),
        ]

        result = self.matcher.match(system, bank)

        assert len(result.matched) == 2
        assert result.unmatched_bank == []

    def test_unmatched_bank_keeps_input_order(self):
        bank = [
            bank_txn("B3", "-3", DEBIT),
            bank_txn("B1", "-1", DEBIT),
            bank_txn("B2", "-2", DEBIT),
        ]
        system = [system_txn("SYS001", "1", DEBIT)]

        result = self.matcher.match(system, bank)

        assert [t.id for t in result.unmatched_bank] == ["B3", "B2"]

    def test_does_not_mutate_inputs(self):
        system = [system_txn("SYS001", "150.50", DEBIT)]
        bank = [bank_txn("BANK001", "-150.50", DEBIT)]

        self.matcher.match(system, bank)

        assert system[0].matched is False
        assert bank[0].matched is False
        assert system[0].amount == Decimal("-150.50")

    def test_repeated_runs_are_independent(self):
        system = [system_txn("SYS001", "150.50", DEBIT)]
        bank = [bank_txn("BANK001", "-150.50", DEBIT)]

        first = self.matcher.match(system, bank)
        second = self.matcher.match(system, bank)

        assert len(first.matched) == 1
        assert len(second.matched) == 1

    def test_partition_completeness_on_mixed_input(self):
        system = [
            system_txn("S1", "10", DEBIT),
            system_txn("S2", "10", DEBIT),
            system_txn("S3", "25", CREDIT, when=date(2024, 3, 16)),
            system_txn("S4", "7.77", CREDIT),
            system_txn("S5", "99", DEBIT, when=datetime(2024, 3, 17, 9, 0)),
        ]
        bank = [
            bank_txn("B1", "-10", DEBIT),
            bank_txn("B2", "-10", DEBIT),
            bank_txn("B3", "25", CREDIT, when=date(2024, 3, 16)),
            bank_txn("B4", "-7.77", DEBIT),
            bank_txn("B5", "-99", DEBIT, when=date(2024, 3, 17)),
            bank_txn("B6", "1", CREDIT),
        ]

        result = self.matcher.match(system, bank)

        assert_partitioned(result, system, bank)
        matched_bank_ids = [p.bank_transaction.id for p in result.matched]
        assert len(matched_bank_ids) == len(set(matched_bank_ids))
        assert sorted(matched_bank_ids) == ["B3", "B5"]

    def test_tolerance_is_accepted_and_ignored(self):
        matcher = ExactMatchStrategy(MatcherConfig(amount_tolerance_percent=5.0))
        system = [system_txn("SYS001", "100", DEBIT)]
        bank = [bank_txn("BANK001", "-101", DEBIT)]

        result = matcher.match(system, bank)

        assert result.matched == []

    def test_negative_tolerance_is_rejected(self):
        config = MatcherConfig.model_construct(amount_tolerance_percent=-1.0)
        with pytest.raises(ConfigurationError):
            ExactMatchStrategy(config)

    def test_set_config_replaces_configuration(self):
        config = MatcherConfig(amount_tolerance_percent=2.5)
        self.matcher.set_config(config)
        assert self.matcher.config is config


def test_amounts_equal_epsilon():
    assert amounts_equal(Decimal("150.50"), Decimal("150.5009"))
    assert not amounts_equal(Decimal("150.50"), Decimal("150.501"))


class TestRegistry:
    def test_exact_is_registered(self):
        assert "exact" in available_strategies()
        assert isinstance(get_strategy("exact"), ExactMatchStrategy)

    def test_lookup_is_case_insensitive(self):
        assert isinstance(get_strategy("EXACT"), ExactMatchStrategy)

    def test_get_strategy_passes_config(self):
        config = MatcherConfig(amount_tolerance_percent=1.0)
        assert get_strategy("exact", config).config is config

    def test_unknown_strategy(self):
        with pytest.raises(ConfigurationError, match="Unknown matching algorithm"):
            get_strategy("fuzzy")

    def test_register_custom_strategy(self):
        class EverythingUnmatched(MatchingStrategy):
            def name(self):
                return "none"

            def match(self, system_txns, bank_txns):
                result = MatchResult(
                    algorithm_used=self.name(),
                    unmatched_system=list(system_txns),
                    unmatched_bank=list(bank_txns),
                )
                result.finalize()
                return result

        register_strategy("none", EverythingUnmatched)

        strategy = get_strategy("none")
        result = strategy.match([system_txn("S1", "1", DEBIT)], [])
        assert result.algorithm_used == "none"
        assert result.match_rate == 0.0

    def test_register_rejects_non_strategy(self):
        with pytest.raises(ConfigurationError):
            register_strategy("bad", dict)
