"""Quote and reservation summaries: read-back, de-duplication and totals."""

from __future__ import annotations

import datetime
import uuid
from collections import defaultdict
from collections.abc import Callable, Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any, TypeVar

from sqlalchemy import inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import with_timeout
from app.models import (
    DETAIL_PRICE_CODES,
    SERVICE_RECORD_MODELS,
    Quote,
    QuoteItem,
    ServiceType,
)
from app.services import catalog_service

T = TypeVar("T")

# Rows of the same priced entity shown for context are keyed more finely for
# cabins, which repeat one code across cruises and schedules.
CONTEXT_KEYS: dict[str, tuple[str, ...]] = {
    "room": ("room_code", "cruise", "room_type", "schedule"),
}

DETAIL_TOTAL_FIELDS = ("room_total_price", "car_total_price", "total_price")


@dataclass(slots=True)
class QuoteLine:
    """A persisted quote item joined with its service record and catalog row."""

    item_id: uuid.UUID
    service_type: ServiceType
    service_ref_id: uuid.UUID
    code: str | None
    quantity: int
    unit_price: int
    total_price: int | None
    usage_date: datetime.date | None
    record: dict[str, Any] = field(default_factory=dict)
    entry: dict[str, Any] | None = None


@dataclass(slots=True)
class SummaryRecord:
    """One presentable row; merged rows carry how many sources they absorbed."""

    key: Hashable
    service_type: ServiceType
    code: str | None
    quantity: int
    total_price: int
    unit_price: int = 0
    occurrence_count: int = 1
    item_ids: tuple[uuid.UUID, ...] = ()
    record: dict[str, Any] = field(default_factory=dict)
    entry: dict[str, Any] | None = None


@dataclass(slots=True)
class SectionTotals:
    by_service_type: dict[str, int]
    grand_total: int


@dataclass(slots=True)
class QuoteSummary:
    """Aggregated view of a quote."""

    quote_id: uuid.UUID
    sections: dict[str, list[SummaryRecord]]
    section_totals: dict[str, int]
    computed_total: int
    stored_total: int
    grand_total: int
    price_context: dict[str, list[dict[str, Any]]]


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _amount(value: Any) -> int:
    if value is None:
        return 0
    return int(value)


def summary_record(line: QuoteLine) -> SummaryRecord:
    """Wrap a quote line so it can be merged by priced-entity code."""
    return SummaryRecord(
        key=(line.service_type.value, line.code),
        service_type=line.service_type,
        code=line.code,
        quantity=line.quantity or 0,
        total_price=_amount(line.total_price),
        unit_price=_amount(line.unit_price),
        item_ids=(line.item_id,),
        record=dict(line.record),
        entry=dict(line.entry) if line.entry is not None else None,
    )


def deduplicate_by_key(
    records: Iterable[SummaryRecord],
    key: Callable[[SummaryRecord], Hashable] | None = None,
) -> list[SummaryRecord]:
    """Merge records sharing a key, summing quantities, totals and occurrences.

    The first record of each key keeps its position and descriptive fields.
    Inputs are never mutated, so the merge is idempotent and conserves totals.
    """
    key_fn = key or (lambda record: record.key)
    merged: dict[Hashable, SummaryRecord] = {}
    for record in records:
        record_key = key_fn(record)
        existing = merged.get(record_key)
        if existing is None:
            merged[record_key] = replace(record, record=dict(record.record))
            continue
        merged[record_key] = replace(
            existing,
            quantity=existing.quantity + (record.quantity or 0),
            total_price=existing.total_price + _amount(record.total_price),
            occurrence_count=existing.occurrence_count + record.occurrence_count,
            item_ids=existing.item_ids + record.item_ids,
        )
    return list(merged.values())


def first_per_key(rows: Iterable[T], key: Callable[[T], Hashable]) -> list[T]:
    """Keep the first row for each key; context rows are not summed."""
    kept: dict[Hashable, T] = {}
    for row in rows:
        kept.setdefault(key(row), row)
    return list(kept.values())


def sum_by_section(lines: Iterable[Any]) -> SectionTotals:
    """Sum ``total_price`` per service type and overall; nulls count as zero."""
    totals: dict[str, int] = defaultdict(int)
    for line in lines:
        service_type = _field(line, "service_type")
        label = getattr(service_type, "value", service_type) or "unknown"
        totals[label] += _amount(_field(line, "total_price"))
    return SectionTotals(by_service_type=dict(totals), grand_total=sum(totals.values()))


def reconcile_grand_total(stored_total: int | None, computed_total: int | None) -> int:
    """Present the larger of the stored quote total and the live sum."""
    return max(_amount(stored_total), _amount(computed_total))


def detail_total(details: Iterable[Any]) -> int:
    """Sum the price column of reservation detail rows of any table."""
    total = 0
    for detail in details:
        for name in DETAIL_TOTAL_FIELDS:
            value = _field(detail, name)
            if value is not None:
                total += _amount(value)
                break
    return total


def _row_dict(obj: Any) -> dict[str, Any]:
    return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}


def _context_key(catalog: str, code_attr: str) -> Callable[[dict[str, Any]], Hashable]:
    names = CONTEXT_KEYS.get(catalog, (code_attr,))
    return lambda row: tuple(row.get(name) for name in names)


async def list_quote_lines(
    session: AsyncSession, quote_id: uuid.UUID
) -> list[QuoteLine]:
    """Read back every quote item with its service record and catalog row."""
    result = await with_timeout(
        session.execute(
            select(QuoteItem)
            .where(QuoteItem.quote_id == quote_id)
            .order_by(QuoteItem.created_at, QuoteItem.id)
        ),
        label="quote items",
    )
    items = list(result.scalars().all())

    by_type: dict[ServiceType, list[QuoteItem]] = defaultdict(list)
    for item in items:
        by_type[item.service_type].append(item)

    records: dict[uuid.UUID, dict[str, Any]] = {}
    entries: dict[tuple[ServiceType, str], dict[str, Any]] = {}
    for service_type, typed_items in by_type.items():
        model = SERVICE_RECORD_MODELS[service_type]
        ref_ids = [item.service_ref_id for item in typed_items]
        record_result = await with_timeout(
            session.execute(select(model).where(model.id.in_(ref_ids))),
            label=f"{service_type.value} records",
        )
        codes: set[str] = set()
        for record in record_result.scalars().all():
            records[record.id] = _row_dict(record)
            codes.add(record.price_code)

        catalog_code = catalog_service.get_catalog(model.catalog_name).code_attr
        catalog_rows = await catalog_service.get_entries(
            session, model.catalog_name, codes
        )
        for row in first_per_key(
            (_row_dict(row) for row in catalog_rows),
            key=lambda row, attr=catalog_code: row[attr],
        ):
            entries[(service_type, row[catalog_code])] = row

    lines: list[QuoteLine] = []
    for item in items:
        model = SERVICE_RECORD_MODELS[item.service_type]
        record = records.get(item.service_ref_id, {})
        code = record.get(model.code_attr)
        lines.append(
            QuoteLine(
                item_id=item.id,
                service_type=item.service_type,
                service_ref_id=item.service_ref_id,
                code=code,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=item.total_price,
                usage_date=item.usage_date,
                record=record,
                entry=entries.get((item.service_type, code)) if code else None,
            )
        )
    return lines


def build_quote_summary(quote: Quote, lines: Sequence[QuoteLine]) -> QuoteSummary:
    """Group lines per service type, merge duplicates and reconcile totals."""
    grouped: dict[str, list[SummaryRecord]] = defaultdict(list)
    for line in lines:
        grouped[line.service_type.value].append(summary_record(line))
    sections = {
        service_type: deduplicate_by_key(records)
        for service_type, records in grouped.items()
    }
    totals = sum_by_section(lines)
    return QuoteSummary(
        quote_id=quote.id,
        sections=sections,
        section_totals=totals.by_service_type,
        computed_total=totals.grand_total,
        stored_total=_amount(quote.total_price),
        grand_total=reconcile_grand_total(quote.total_price, totals.grand_total),
        price_context={},
    )


async def summarize_quote(session: AsyncSession, quote: Quote) -> QuoteSummary:
    """Build the de-duplicated summary of a quote, with price context rows."""
    lines = await list_quote_lines(session, quote.id)
    summary = build_quote_summary(quote, lines)

    codes_by_type: dict[ServiceType, set[str]] = defaultdict(set)
    for line in lines:
        if line.code:
            codes_by_type[line.service_type].add(line.code)
    for service_type, codes in codes_by_type.items():
        model = SERVICE_RECORD_MODELS[service_type]
        rows = await catalog_service.get_entries(session, model.catalog_name, codes)
        summary.price_context[service_type.value] = first_per_key(
            (_row_dict(row) for row in rows),
            key=_context_key(
                model.catalog_name,
                catalog_service.get_catalog(model.catalog_name).code_attr,
            ),
        )
    return summary


async def detail_price_context(
    session: AsyncSession, details: Iterable[Any]
) -> dict[str, list[dict[str, Any]]]:
    """Catalog rows for the price codes referenced by reservation details."""
    codes_by_catalog: dict[str, set[str]] = defaultdict(set)
    for detail in details:
        priced = DETAIL_PRICE_CODES.get(type(detail))
        if priced is None:
            continue
        catalog, code_attr = priced
        code = getattr(detail, code_attr)
        if code:
            codes_by_catalog[catalog].add(code)

    context: dict[str, list[dict[str, Any]]] = {}
    for catalog, codes in codes_by_catalog.items():
        rows = await catalog_service.get_entries(session, catalog, codes)
        context[catalog] = first_per_key(
            (_row_dict(row) for row in rows),
            key=_context_key(catalog, catalog_service.get_catalog(catalog).code_attr),
        )
    return context
