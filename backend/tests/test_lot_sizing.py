"""
Testes para netting + lot sizing (reorder point / MOQ / MPQ).
"""
import pytest

from mrp.lot_sizing import LotSizingPolicy, net_and_size, net_period


class TestLotSizingPolicy:
    """Prioridade estrita: reorder point > MOQ > MPQ > procura."""

    def test_reorder_point_precedence(self):
        policy = LotSizingPolicy(mpq=10, moq=100, reorder_point=50)
        assert policy.required_quantity(20) == 70

    def test_moq_fallback(self):
        assert LotSizingPolicy(mpq=0, moq=100, reorder_point=0).required_quantity(40) == 100

    def test_mpq_rounding(self):
        assert LotSizingPolicy(mpq=25, moq=0, reorder_point=0).required_quantity(51) == 75

    def test_moq_not_above_demand_falls_through(self):
        # MOQ applies only when strictly greater than the demand
        assert LotSizingPolicy(mpq=25, moq=40, reorder_point=0).required_quantity(40) == 50

    def test_verbatim_demand(self):
        assert LotSizingPolicy().required_quantity(13.5) == 13.5

    def test_zero_demand(self):
        assert LotSizingPolicy(mpq=10, moq=100, reorder_point=50).required_quantity(0) == 0

    @pytest.mark.parametrize("mpq", [1, 7, 25, 100])
    def test_mpq_monotonicity(self, mpq):
        policy = LotSizingPolicy(mpq=mpq, moq=0, reorder_point=0)
        for demand in [0.5, 1, 6, 7, 8, 24, 26, 99, 101, 1234.5]:
            qty = policy.required_quantity(demand)
            assert qty >= demand
            assert qty % mpq == 0


class TestNetting:
    """Consumo do excesso período a período."""

    def test_excess_absorbs_then_sizes(self):
        policy = LotSizingPolicy(mpq=25)
        result = net_and_size({"05.2024": 32, "06.2024": 18}, 40, policy)

        first, second = result.steps
        assert (first.adjusted_demand, first.required_qty, first.remaining_excess) == (0, 0, 8)
        assert (second.adjusted_demand, second.required_qty, second.remaining_excess) == (10, 25, 0)
        assert result.required_by_period() == {"05.2024": 0, "06.2024": 25}

    def test_excess_conservation(self):
        demand = {"a": 30, "b": 50, "c": 10, "d": 0, "e": 5}
        result = net_and_size(demand, 60, LotSizingPolicy())

        assert result.total_consumed <= 60
        remaining = [result.initial_excess] + [s.remaining_excess for s in result.steps]
        assert all(r >= 0 for r in remaining)
        assert all(later <= earlier for earlier, later in zip(remaining, remaining[1:]))
        assert [s.consumed_excess for s in result.steps] == [30, 30, 0, 0, 0]

    def test_insertion_order_drives_consumption(self):
        result = net_and_size({"07.2024": 10, "05.2024": 10}, 10, LotSizingPolicy())
        assert result.required_by_period() == {"07.2024": 0, "05.2024": 10}

    def test_non_positive_period_leaves_excess(self):
        step = net_period(15, "05.2024", 0, LotSizingPolicy(moq=100))
        assert step.required_qty == 0
        assert step.remaining_excess == 15

    def test_negative_excess_treated_as_zero(self):
        result = net_and_size({"05.2024": 5}, -10, LotSizingPolicy())
        assert result.steps[0].adjusted_demand == 5

    def test_empty_demand(self):
        result = net_and_size({}, 100, LotSizingPolicy(mpq=5))
        assert result.steps == ()
        assert result.remaining_excess == 100
