import threading
from decimal import Decimal

import pytest

from stockcheck.core.quantity import to_quantity
from stockcheck.services.stock_record_source import StockRecord
from stockcheck.services.stock_validation_service import (
    AllocationLine,
    LocationStock,
    OrderLine,
    aggregate_stock,
    get_consolidated_stock,
    list_available_locations,
    location_stock_from_record,
    plan_allocation,
    validate_consolidated_stock,
    validate_multiple_consolidated_stock,
)


MAIN = StockRecord(1, "Main Warehouse", "warehouse", 50, 10, 60)
SECONDARY = StockRecord(2, "Secondary Warehouse", "warehouse", 30, 5, 35)
RETAIL = StockRecord(3, "Retail Store", "store", 0, 0, 0)


class FakeStockRecordSource:
    def __init__(self, records_by_product=None, errors=None):
        self.records_by_product = records_by_product or {}
        self.errors = errors or {}
        self.calls: list[tuple[int, int | None]] = []
        self._lock = threading.Lock()

    def fetch_stock_records(self, product_id, organization_id=None):
        with self._lock:
            self.calls.append((product_id, organization_id))
        if product_id in self.errors:
            raise self.errors[product_id]
        return list(self.records_by_product.get(product_id, []))


def _record(location_id: int, available, reserved=0, on_hand=0) -> StockRecord:
    return StockRecord(location_id, f"Location {location_id}", "warehouse", available, reserved, on_hand)


def _location(location_id: int, available) -> LocationStock:
    return location_stock_from_record(_record(location_id, available))


def _allocated(result) -> list[tuple[int, Decimal]]:
    return [(line.location_id, line.quantity) for line in result.suggested_allocation]


def test_to_quantity_coalesces_missing_and_keeps_recorded_values():
    assert to_quantity(None) == Decimal("0")
    assert to_quantity(-15) == Decimal("-15")
    assert to_quantity(25.5) == Decimal("25.5")
    assert to_quantity("0.1") + to_quantity("0.2") == Decimal("0.3")
    exact = Decimal("12.3400")
    assert to_quantity(exact) is exact


def test_aggregate_sums_every_record_and_echoes_locations_in_order():
    aggregate = aggregate_stock([MAIN, SECONDARY, RETAIL])

    assert aggregate.total_available == 80
    assert aggregate.total_reserved == 15
    assert aggregate.total_on_hand == 95
    assert [loc.location_id for loc in aggregate.locations] == [1, 2, 3]
    assert aggregate.locations[2] == LocationStock(
        location_id=3,
        location_name="Retail Store",
        location_type="store",
        available=Decimal("0"),
        reserved=Decimal("0"),
        on_hand=Decimal("0"),
    )


def test_aggregate_treats_null_quantities_as_zero():
    aggregate = aggregate_stock(
        [
            StockRecord(1, "Main Warehouse", "warehouse", 50, None, 50),
            StockRecord(2, "Secondary Warehouse", "warehouse", None, 5, None),
        ]
    )

    assert aggregate.total_available == 50
    assert aggregate.total_reserved == 5
    assert aggregate.total_on_hand == 50
    assert aggregate.locations[1].available == 0
    assert aggregate.locations[1].on_hand == 0
    assert aggregate.locations[0].reserved == 0


def test_aggregate_keeps_negative_stock_in_totals():
    aggregate = aggregate_stock([_record(1, -10, -5, -15), _record(2, 25, 0, 25)])

    assert aggregate.total_available == 15
    assert aggregate.total_reserved == -5
    assert aggregate.total_on_hand == 10
    assert aggregate.locations[0].available == -10


def test_aggregate_of_no_records_is_empty_not_an_error():
    aggregate = aggregate_stock([])

    assert aggregate.total_available == 0
    assert aggregate.total_reserved == 0
    assert aggregate.total_on_hand == 0
    assert aggregate.locations == []


def test_plan_drains_largest_locations_first():
    locations = [_location(3, 10), _location(1, 50), _location(2, 30)]

    allocation = plan_allocation(locations, 85)

    assert allocation == [
        AllocationLine(location_id=1, quantity=Decimal("50")),
        AllocationLine(location_id=2, quantity=Decimal("30")),
        AllocationLine(location_id=3, quantity=Decimal("5")),
    ]


def test_plan_breaks_ties_by_input_order():
    locations = [_location(7, 30), _location(4, 30), _location(9, 30)]

    assert [line.location_id for line in plan_allocation(locations, 45)] == [7, 4]


def test_plan_is_none_without_positive_stock():
    assert plan_allocation([], 10) is None
    assert plan_allocation([_location(1, 0), _location(2, -4)], 10) is None


def test_plan_for_non_positive_request_is_empty_when_stock_exists():
    assert plan_allocation([_location(1, 50)], 0) == []
    assert plan_allocation([_location(1, 50)], -3) == []


def test_validate_with_sufficient_stock():
    source = FakeStockRecordSource({1: [MAIN, SECONDARY, RETAIL]})

    result = validate_consolidated_stock(source, product_id=1, quantity=70)

    assert result.is_available is True
    assert result.requested == 70
    assert result.total_available == 80
    assert _allocated(result) == [(1, 50), (2, 20)]
    assert source.calls == [(1, None)]


def test_validate_with_insufficient_stock_proposes_full_exhaustion():
    source = FakeStockRecordSource({1: [MAIN, SECONDARY, RETAIL]})

    result = validate_consolidated_stock(source, product_id=1, quantity=100)

    assert result.is_available is False
    assert _allocated(result) == [(1, 50), (2, 30)]


def test_validate_exact_match_and_small_request():
    source = FakeStockRecordSource({1: [MAIN, SECONDARY, RETAIL]})

    exact = validate_consolidated_stock(source, product_id=1, quantity=80)
    small = validate_consolidated_stock(source, product_id=1, quantity=10)

    assert exact.is_available is True
    assert _allocated(exact) == [(1, 50), (2, 30)]
    assert _allocated(small) == [(1, 10)]
    assert all(line.location_id != 3 for line in small.suggested_allocation)


def test_validate_passes_organization_scope_to_source():
    source = FakeStockRecordSource({1: [MAIN]})

    validate_consolidated_stock(source, product_id=1, quantity=5, organization_id=42)

    assert source.calls == [(1, 42)]


def test_validate_product_without_records():
    source = FakeStockRecordSource()

    result = validate_consolidated_stock(source, product_id=999, quantity=10)

    assert result.is_available is False
    assert result.total_available == 0
    assert result.total_reserved == 0
    assert result.total_on_hand == 0
    assert result.locations == []
    assert result.suggested_allocation is None


def test_validate_zero_request_without_records_is_trivially_available():
    result = validate_consolidated_stock(FakeStockRecordSource(), product_id=999, quantity=0)

    assert result.is_available is True
    assert result.suggested_allocation is None


def test_validate_only_zero_stock_returns_no_allocation():
    source = FakeStockRecordSource({1: [_record(1, 0), _record(2, 0)]})

    result = validate_consolidated_stock(source, product_id=1, quantity=10)

    assert result.is_available is False
    assert result.suggested_allocation is None


def test_validate_decimal_quantities():
    source = FakeStockRecordSource({1: [_record(1, 25.5, 2.5, 28)]})

    result = validate_consolidated_stock(source, product_id=1, quantity=20.5)

    assert result.total_available == Decimal("25.5")
    assert result.total_reserved == Decimal("2.5")
    assert result.is_available is True
    assert _allocated(result) == [(1, Decimal("20.5"))]


def test_validate_negative_stock():
    source = FakeStockRecordSource({1: [_record(1, -10, -5, -15)]})

    result = validate_consolidated_stock(source, product_id=1, quantity=5)

    assert result.total_available == -10
    assert result.total_reserved == -5
    assert result.is_available is False
    assert result.suggested_allocation is None


def test_validate_negative_location_lowers_total_but_not_the_plan():
    source = FakeStockRecordSource({1: [_record(1, 50), _record(2, -10)]})

    result = validate_consolidated_stock(source, product_id=1, quantity=45)

    assert result.total_available == 40
    assert result.is_available is False
    assert _allocated(result) == [(1, 45)]


def test_validate_very_large_quantities():
    source = FakeStockRecordSource({1: [_record(1, 1_000_000)]})

    result = validate_consolidated_stock(source, product_id=1, quantity=999_999)

    assert result.is_available is True
    assert _allocated(result) == [(1, 999_999)]


def test_validate_is_repeatable():
    source = FakeStockRecordSource({1: [_record(1, 20), _record(2, 20), _record(3, 5)]})

    first = validate_consolidated_stock(source, product_id=1, quantity=30)
    second = validate_consolidated_stock(source, product_id=1, quantity=30)

    assert first == second
    assert _allocated(first) == [(1, 20), (2, 10)]


def test_validate_propagates_source_errors():
    boom = ConnectionError("stock database unreachable")
    source = FakeStockRecordSource(errors={1: boom})

    with pytest.raises(ConnectionError) as exc_info:
        validate_consolidated_stock(source, product_id=1, quantity=1)

    assert exc_info.value is boom


def test_get_consolidated_stock_and_available_locations():
    source = FakeStockRecordSource({1: [MAIN, RETAIL, SECONDARY, _record(4, -2)]})

    aggregate = get_consolidated_stock(source, product_id=1, organization_id=3)
    available = list_available_locations(source, product_id=1, organization_id=3)

    assert aggregate.total_available == 78
    assert len(aggregate.locations) == 4
    assert [loc.location_id for loc in available] == [1, 2]
    assert source.calls == [(1, 3), (1, 3)]


def test_multiple_products_with_one_short():
    source = FakeStockRecordSource(
        {
            1: [MAIN, SECONDARY, RETAIL],
            2: [StockRecord(1, "Main Warehouse", "warehouse", 10, 5, 25)],
        }
    )

    result = validate_multiple_consolidated_stock(
        source,
        items=[OrderLine(product_id=1, quantity=60), OrderLine(product_id=2, quantity=15)],
        organization_id=1,
    )

    assert result.order_feasible is False
    assert result.summary.total_products_available == 1
    assert [product.is_available for product in result.products] == [True, False]
    assert sorted(source.calls) == [(1, 1), (2, 1)]


def test_multiple_products_summary():
    source = FakeStockRecordSource(
        {
            1: [MAIN, SECONDARY, RETAIL],
            2: [StockRecord(1, "Main Warehouse", "warehouse", 20, 5, 25)],
        }
    )

    result = validate_multiple_consolidated_stock(
        source,
        items=[OrderLine(product_id=1, quantity=60), OrderLine(product_id=2, quantity=15)],
    )

    assert result.order_feasible is True
    assert result.summary.total_products_requested == 2
    assert result.summary.total_products_available == 2
    assert result.summary.total_quantity_requested == 75
    assert result.summary.total_quantity_available == 100


def test_multiple_products_run_concurrently():
    barrier = threading.Barrier(2, timeout=5)

    class RendezvousSource(FakeStockRecordSource):
        def fetch_stock_records(self, product_id, organization_id=None):
            # Only passes when both lookups are in flight at once.
            barrier.wait()
            return super().fetch_stock_records(product_id, organization_id)

    source = RendezvousSource({1: [_record(1, 5)], 2: [_record(1, 5)]})

    result = validate_multiple_consolidated_stock(
        source,
        items=[OrderLine(product_id=1, quantity=1), OrderLine(product_id=2, quantity=1)],
        max_workers=2,
    )

    assert result.order_feasible is True


def test_multiple_products_keep_input_order():
    second_done = threading.Event()

    class SlowFirstSource(FakeStockRecordSource):
        def fetch_stock_records(self, product_id, organization_id=None):
            if product_id == 1:
                assert second_done.wait(timeout=5)
            records = super().fetch_stock_records(product_id, organization_id)
            if product_id == 2:
                second_done.set()
            return records

    source = SlowFirstSource({1: [_record(1, 5)], 2: [_record(2, 1)]})

    result = validate_multiple_consolidated_stock(
        source,
        items=[OrderLine(product_id=1, quantity=3), OrderLine(product_id=2, quantity=3)],
        max_workers=2,
    )

    assert [product.product_id for product in result.products] == [1, 2]
    assert [product.is_available for product in result.products] == [True, False]


def test_multiple_products_fail_fast_on_lookup_error():
    boom = TimeoutError("stock query timed out")
    source = FakeStockRecordSource({1: [_record(1, 5)], 3: [_record(1, 5)]}, errors={2: boom})

    with pytest.raises(TimeoutError) as exc_info:
        validate_multiple_consolidated_stock(
            source,
            items=[
                OrderLine(product_id=1, quantity=1),
                OrderLine(product_id=2, quantity=1),
                OrderLine(product_id=3, quantity=1),
            ],
        )

    assert exc_info.value is boom


def test_multiple_products_with_no_lines():
    source = FakeStockRecordSource()

    result = validate_multiple_consolidated_stock(source, items=[])

    assert result.order_feasible is True
    assert result.products == []
    assert result.summary.total_products_requested == 0
    assert result.summary.total_quantity_available == 0
    assert source.calls == []
