"""Cascading selection state for catalog-driven forms.

A selection is a set of named slots (``airport_category -> airport_route ->
airport_car_type``) arranged as a dependency graph. Setting a slot clears
every slot reachable from it, together with the option lists loaded for those
slots, so a stale downstream choice can never be paired with a new upstream
value. The reducer functions here are pure; ``refresh_selection`` is the only
coroutine and performs the catalog round trips for the next step.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import BookingValidationError
from app.services import catalog_service
from app.services.catalog_service import (
    CatalogSpec,
    DateWindow,
    Resolution,
    ResolutionStatus,
)

WINDOW_SLOT = "window"


def dependency_graph(spec: CatalogSpec) -> dict[str, tuple[str, ...]]:
    """Direct dependents of each slot; dated catalogs hang the chain off the window."""
    graph: dict[str, tuple[str, ...]] = {}
    slots = list(spec.chain)
    if spec.windowed:
        slots.insert(0, WINDOW_SLOT)
    for upstream, downstream in zip(slots, slots[1:]):
        graph[upstream] = (downstream,)
    graph.setdefault(slots[-1], ())
    return graph


def downstream_of(graph: Mapping[str, tuple[str, ...]], slot: str) -> list[str]:
    """Every slot reachable from ``slot`` (excluding itself), in visit order."""
    seen: list[str] = []
    pending = list(graph.get(slot, ()))
    while pending:
        current = pending.pop(0)
        if current in seen:
            continue
        seen.append(current)
        pending.extend(graph.get(current, ()))
    return seen


@dataclass(frozen=True)
class SelectionState:
    """Serializable snapshot of one leg's selections and loaded option lists."""

    catalog: str
    values: Mapping[str, Any] = field(default_factory=dict)
    options: Mapping[str, tuple[Any, ...]] = field(default_factory=dict)
    resolution: Resolution | None = None

    @property
    def spec(self) -> CatalogSpec:
        return catalog_service.get_catalog(self.catalog)

    @property
    def window(self) -> DateWindow | None:
        return self.values.get(WINDOW_SLOT)

    @property
    def filters(self) -> dict[str, Any]:
        return {
            slot: value
            for slot, value in self.values.items()
            if slot != WINDOW_SLOT and value not in (None, "")
        }

    @property
    def code(self) -> str | None:
        if self.resolution is not None and self.resolution.is_found:
            return self.resolution.code
        return None

    def next_slot(self) -> str | None:
        """First chain slot that still needs a value."""
        for slot in self.spec.chain:
            if self.values.get(slot) in (None, ""):
                return slot
        return None


def new_selection(catalog: str, **preset: Any) -> SelectionState:
    """Start an empty selection, applying ``preset`` slots in chain order."""
    state = SelectionState(catalog=catalog_service.get_catalog(catalog).name)
    order = [WINDOW_SLOT, *state.spec.chain]
    for slot in order:
        if slot in preset:
            state = apply_selection(state, slot, preset.pop(slot))
    if preset:
        raise BookingValidationError(
            f"Unknown {catalog} selection slots: {', '.join(sorted(preset))}"
        )
    return state


def apply_selection(state: SelectionState, slot: str, value: Any) -> SelectionState:
    """Set ``slot`` and reset every dependent slot and option list."""
    graph = dependency_graph(state.spec)
    if slot not in graph:
        raise BookingValidationError(f"Unknown {state.catalog} selection slot: {slot}")
    if state.values.get(slot) == value and slot in state.values:
        return state

    cleared = set(downstream_of(graph, slot))
    values = {
        key: current
        for key, current in state.values.items()
        if key != slot and key not in cleared
    }
    if value not in (None, ""):
        values[slot] = value
    options = {
        key: current for key, current in state.options.items() if key not in cleared
    }
    return replace(state, values=values, options=options, resolution=None)


def with_options(
    state: SelectionState, slot: str, options: list[Any] | tuple[Any, ...]
) -> SelectionState:
    merged = dict(state.options)
    merged[slot] = tuple(options)
    return replace(state, options=merged)


async def refresh_selection(
    session: AsyncSession, state: SelectionState
) -> SelectionState:
    """Load the option list for the next open slot, or resolve the code.

    A resolution that finds nothing clears the last slot so the caller can
    pick again from the options already loaded for it.
    """
    slot = state.next_slot()
    if slot is not None:
        upstream = state.spec.chain[: state.spec.chain.index(slot)]
        filters = {key: state.values[key] for key in upstream if key in state.values}
        options = await catalog_service.list_options(
            session, state.catalog, slot, filters, window=state.window
        )
        return with_options(state, slot, options)

    resolution = await catalog_service.resolve_code(
        session, state.catalog, state.filters, window=state.window
    )
    if resolution.status is ResolutionStatus.NOT_FOUND:
        state = apply_selection(state, state.spec.chain[-1], None)
    return replace(state, resolution=resolution)


class ApplyType(str, enum.Enum):
    """Which legs a transfer request covers."""

    PICKUP = "pickup"
    SENDING = "sending"
    BOTH = "both"


PICKUP_CATEGORY = "픽업"
SENDING_CATEGORY = "샌딩"

_APPLY_TYPE_CATEGORIES: dict[ApplyType, tuple[str, ...]] = {
    ApplyType.PICKUP: (PICKUP_CATEGORY,),
    ApplyType.SENDING: (SENDING_CATEGORY,),
    ApplyType.BOTH: (PICKUP_CATEGORY, SENDING_CATEGORY),
}


def categories_for_apply_type(apply_type: ApplyType | str) -> tuple[str, ...]:
    try:
        return _APPLY_TYPE_CATEGORIES[ApplyType(apply_type)]
    except ValueError as exc:
        raise BookingValidationError(f"Unknown apply type: {apply_type}") from exc


def legs_for_apply_type(
    apply_type: ApplyType | str, catalog: str = "airport"
) -> list[SelectionState]:
    """One independent selection per leg, with the category slot pre-filled."""
    category_slot = catalog_service.get_catalog(catalog).chain[0]
    return [
        new_selection(catalog, **{category_slot: category})
        for category in categories_for_apply_type(apply_type)
    ]
