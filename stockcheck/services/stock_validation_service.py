import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from decimal import Decimal

from stockcheck.core.config import settings
from stockcheck.core.observability import log_event
from stockcheck.core.quantity import ZERO_QUANTITY, to_quantity
from stockcheck.services.stock_record_source import StockRecord, StockRecordSource

logger = logging.getLogger("stockcheck.stock_validation")


@dataclass(frozen=True)
class LocationStock:
    location_id: int
    location_name: str
    location_type: str
    available: Decimal
    reserved: Decimal
    on_hand: Decimal


@dataclass(frozen=True)
class AllocationLine:
    location_id: int
    quantity: Decimal


@dataclass(frozen=True)
class StockAggregate:
    total_available: Decimal
    total_reserved: Decimal
    total_on_hand: Decimal
    locations: list[LocationStock]


@dataclass(frozen=True)
class ConsolidatedStockResult:
    product_id: int
    total_available: Decimal
    total_reserved: Decimal
    total_on_hand: Decimal
    requested: Decimal
    is_available: bool
    locations: list[LocationStock]
    # None when no location holds positive stock; distinct from an empty plan.
    suggested_allocation: list[AllocationLine] | None


@dataclass(frozen=True)
class OrderLine:
    product_id: int
    quantity: Decimal | int | float


@dataclass(frozen=True)
class OrderFeasibilitySummary:
    total_products_requested: int
    total_products_available: int
    total_quantity_requested: Decimal
    total_quantity_available: Decimal


@dataclass(frozen=True)
class OrderFeasibilityResult:
    order_feasible: bool
    products: list[ConsolidatedStockResult]
    summary: OrderFeasibilitySummary


def location_stock_from_record(record: StockRecord) -> LocationStock:
    return LocationStock(
        location_id=record.location_id,
        location_name=record.location_name,
        location_type=record.location_type,
        available=to_quantity(record.quantity_available),
        reserved=to_quantity(record.quantity_reserved),
        on_hand=to_quantity(record.quantity_on_hand),
    )


def aggregate_stock(records: Iterable[StockRecord]) -> StockAggregate:
    """
    Sum stock across every record of a product.

    Totals mirror the stored rows: a location with negative stock lowers the
    total. The breakdown keeps the order the records were read in.
    """
    locations = [location_stock_from_record(record) for record in records]
    return StockAggregate(
        total_available=sum((loc.available for loc in locations), ZERO_QUANTITY),
        total_reserved=sum((loc.reserved for loc in locations), ZERO_QUANTITY),
        total_on_hand=sum((loc.on_hand for loc in locations), ZERO_QUANTITY),
        locations=locations,
    )


def plan_allocation(
    locations: Sequence[LocationStock],
    requested: Decimal | int | float,
) -> list[AllocationLine] | None:
    """
    Greedy pick list: drain the largest piles first to touch as few locations
    as possible. Ties keep their input order.

    Always proposes the best partial fill, so the plan totals
    min(requested, positive stock). Returns None when no location has
    positive stock at all.
    """
    candidates = sorted(
        (loc for loc in locations if loc.available > 0),
        key=lambda loc: loc.available,
        reverse=True,
    )
    if not candidates:
        return None

    remaining = to_quantity(requested)
    allocation: list[AllocationLine] = []
    for loc in candidates:
        if remaining <= 0:
            break
        quantity = min(loc.available, remaining)
        allocation.append(AllocationLine(location_id=loc.location_id, quantity=quantity))
        remaining -= quantity
    return allocation


def get_consolidated_stock(
    source: StockRecordSource,
    *,
    product_id: int,
    organization_id: int | None = None,
) -> StockAggregate:
    return aggregate_stock(source.fetch_stock_records(product_id, organization_id))


def list_available_locations(
    source: StockRecordSource,
    *,
    product_id: int,
    organization_id: int | None = None,
) -> list[LocationStock]:
    records = source.fetch_stock_records(product_id, organization_id)
    return [loc for loc in map(location_stock_from_record, records) if loc.available > 0]


def validate_consolidated_stock(
    source: StockRecordSource,
    *,
    product_id: int,
    quantity: Decimal | int | float,
    organization_id: int | None = None,
) -> ConsolidatedStockResult:
    aggregate = get_consolidated_stock(source, product_id=product_id, organization_id=organization_id)
    requested = to_quantity(quantity)
    return ConsolidatedStockResult(
        product_id=product_id,
        total_available=aggregate.total_available,
        total_reserved=aggregate.total_reserved,
        total_on_hand=aggregate.total_on_hand,
        requested=requested,
        is_available=aggregate.total_available >= requested,
        locations=aggregate.locations,
        suggested_allocation=plan_allocation(aggregate.locations, requested),
    )


def _summarize(products: list[ConsolidatedStockResult]) -> OrderFeasibilitySummary:
    # Available quantities are pooled across different products here for
    # reporting only; feasibility is judged per product.
    return OrderFeasibilitySummary(
        total_products_requested=len(products),
        total_products_available=sum(1 for product in products if product.is_available),
        total_quantity_requested=sum((product.requested for product in products), ZERO_QUANTITY),
        total_quantity_available=sum((product.total_available for product in products), ZERO_QUANTITY),
    )


def validate_multiple_consolidated_stock(
    source: StockRecordSource,
    *,
    items: Iterable[OrderLine],
    organization_id: int | None = None,
    max_workers: int | None = None,
) -> OrderFeasibilityResult:
    """
    Check every line of an order against consolidated stock.

    Lookups run concurrently and each result lands in the slot of its input
    line, so output order never depends on completion order. The first failed
    lookup aborts the whole evaluation and is re-raised unchanged.
    """
    lines = list(items)
    slots: list[ConsolidatedStockResult | None] = [None] * len(lines)

    if lines:
        workers = min(max_workers or settings.stock_validation_max_workers, len(lines))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="stock-validation") as executor:
            futures: dict[Future, int] = {
                executor.submit(
                    validate_consolidated_stock,
                    source,
                    product_id=line.product_id,
                    quantity=line.quantity,
                    organization_id=organization_id,
                ): index
                for index, line in enumerate(lines)
            }
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            for future in done:
                error = future.exception()
                if error is None:
                    continue
                for waiting in pending:
                    waiting.cancel()
                log_event(
                    logger,
                    logging.ERROR,
                    "stock_lookup_failed",
                    product_id=lines[futures[future]].product_id,
                    organization_id=organization_id,
                    error=str(error),
                )
                raise error

            for future, index in futures.items():
                slots[index] = future.result()

    products = [result for result in slots if result is not None]
    result = OrderFeasibilityResult(
        order_feasible=all(product.is_available for product in products),
        products=products,
        summary=_summarize(products),
    )
    log_event(
        logger,
        logging.INFO,
        "order_feasibility_evaluated",
        organization_id=organization_id,
        products_requested=result.summary.total_products_requested,
        products_available=result.summary.total_products_available,
        order_feasible=result.order_feasible,
    )
    return result
