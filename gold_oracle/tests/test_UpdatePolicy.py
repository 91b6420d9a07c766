"""Unit tests for UpdatePolicy."""

import pytest

from gold_oracle.src.GoldOracleContract import LedgerRecord
from gold_oracle.src.PriceCalculator import PriceSet
from gold_oracle.src.UpdatePolicy import DEFAULT_THRESHOLD, UpdatePolicy


def make_prices(per_gram: int) -> PriceSet:
    """Build a PriceSet whose other fields follow the gram price."""
    return PriceSet(
        per_gram=per_gram,
        per_ounce=per_gram * 31,
        per_karat_24=per_gram,
        per_karat_22=per_gram * 22 // 24,
        per_karat_18=per_gram * 18 // 24,
    )


def make_record(per_gram: int, last_updated_at: int = 1_700_000_000) -> LedgerRecord:
    return LedgerRecord(prices=make_prices(per_gram), last_updated_at=last_updated_at)


class TestUpdatePolicyInit:
    """Test UpdatePolicy initialization."""

    def test_default_threshold(self) -> None:
        """Default threshold is 10000 raw units."""
        assert UpdatePolicy().threshold == DEFAULT_THRESHOLD == 10_000

    def test_custom_threshold(self) -> None:
        """Custom threshold should be stored."""
        assert UpdatePolicy(threshold=5).threshold == 5

    def test_negative_threshold(self) -> None:
        """Negative threshold should raise ValueError."""
        with pytest.raises(ValueError, match="threshold must not be negative"):
            UpdatePolicy(threshold=-1)


class TestUpdatePolicyUninitialized:
    """Test the never-updated record."""

    @pytest.mark.parametrize("candidate_gram", [0, 1, 6550000000])
    def test_always_updates(self, candidate_gram: int) -> None:
        """lastUpdatedAt == 0 always requires an update."""
        current = LedgerRecord(prices=make_prices(0), last_updated_at=0)
        assert UpdatePolicy().should_update(current, make_prices(candidate_gram))

    def test_updates_even_with_identical_prices(self) -> None:
        """Stored prices are ignored while uninitialized."""
        current = make_record(6550000000, last_updated_at=0)
        assert UpdatePolicy().should_update(current, make_prices(6550000000))


class TestUpdatePolicyThreshold:
    """Test the per-gram change threshold."""

    def test_small_change_skipped(self) -> None:
        """A 500 unit move is below the threshold."""
        current = make_record(6550000000)
        assert not UpdatePolicy().should_update(current, make_prices(6550000500))

    def test_large_change_updates(self) -> None:
        """A 10100000 unit move exceeds the threshold."""
        current = make_record(6550000000)
        assert UpdatePolicy().should_update(current, make_prices(6560100000))

    def test_price_drop_updates(self) -> None:
        """Direction does not matter, only the absolute difference."""
        current = make_record(6550000000)
        assert UpdatePolicy().should_update(current, make_prices(6549989999))

    def test_exactly_threshold_skipped(self) -> None:
        """The difference must strictly exceed the threshold."""
        current = make_record(6550000000)
        policy = UpdatePolicy()
        assert not policy.should_update(current, make_prices(6550010000))
        assert policy.should_update(current, make_prices(6550010001))

    def test_unchanged_skipped(self) -> None:
        """Identical prices never trigger an update."""
        current = make_record(6550000000)
        assert not UpdatePolicy().should_update(current, make_prices(6550000000))

    def test_zero_threshold(self) -> None:
        """With threshold 0 any change updates."""
        current = make_record(6550000000)
        policy = UpdatePolicy(threshold=0)
        assert policy.should_update(current, make_prices(6550000001))
        assert not policy.should_update(current, make_prices(6550000000))

    def test_only_gram_compared(self) -> None:
        """Other fields are not checked independently."""
        current = make_record(6550000000)
        candidate = PriceSet(
            per_gram=6550000000,
            per_ounce=1,
            per_karat_24=6550000000,
            per_karat_22=1,
            per_karat_18=1,
        )
        assert not UpdatePolicy().should_update(current, candidate)
