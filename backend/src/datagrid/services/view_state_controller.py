"""View state controller.

Every mutation of a grid's view state goes through this controller. Each
operation takes either a literal next value or a function of the previous
value, normalizes the result, writes it through to the view state store and
returns the very same value as the new live state.
"""

import copy
import logging
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Set, TypeVar, Union

from pydantic import BaseModel, TypeAdapter, ValidationError

from datagrid.core.config import Settings
from datagrid.models.query_core import QueryDescriptor
from datagrid.models.view_state import (
    ColumnDescriptor,
    ColumnFilter,
    ColumnSort,
    PaginationState,
    ViewState,
)
from datagrid.services.view_state_store import ViewStateStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

Updater = Union[T, Callable[[T], T]]
Listener = Callable[[str, FrozenSet[str], ViewState], None]

_ORDER = TypeAdapter(List[str])
_VISIBILITY = TypeAdapter(Dict[str, bool])
_SORTING = TypeAdapter(List[ColumnSort])
_FILTERS = TypeAdapter(List[ColumnFilter])

# Fields whose change invalidates the current page position
RESETS_PAGE = ("sorting", "column_filters")


def resolve_updater(updater: Updater, previous: T) -> T:
    """Apply a functional updater to ``previous``, or return the literal."""
    return updater(previous) if callable(updater) else updater


def normalize_column_order(
    order: Iterable[str], known_ids: List[str], pinned: Optional[str] = None
) -> List[str]:
    """Turn ``order`` into a permutation of ``known_ids``.

    Unknown and repeated ids are dropped, missing ids are appended in
    descriptor order, and the pinned trailing column is moved to the end.
    """
    known = set(known_ids)
    result = []
    seen = set()
    for column_id in order:
        if column_id in known and column_id not in seen:
            result.append(column_id)
            seen.add(column_id)
    result.extend(c for c in known_ids if c not in seen)

    if pinned and pinned in known:
        result = [c for c in result if c != pinned]
        result.append(pinned)
    return result


def _pagination(value: Any) -> PaginationState:
    # Instances are revalidated from their fields; model_copy(update=...) skips validation
    if isinstance(value, BaseModel):
        value = value.model_dump()
    return PaginationState.model_validate(value)


def _row_selection(value: Any) -> Set[str]:
    # Accept the {row_id: bool} mapping used by table libraries as well as sets
    if isinstance(value, dict):
        return {str(k) for k, selected in value.items() if selected}
    if isinstance(value, (str, bytes)):
        raise TypeError("row selection must be a collection of row ids")
    return {str(v) for v in value}


class ViewStateController:
    """Single funnel for every view state mutation of one table."""

    def __init__(
        self,
        table_id: str,
        columns: List[ColumnDescriptor],
        store: ViewStateStore,
        settings: Settings,
    ):
        ids = [c.id for c in columns]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate column ids for table {table_id}: {ids}")

        self.table_id = table_id
        self.columns = {c.id: c for c in columns}
        self.column_ids = ids
        self.store = store
        self.pinned = settings.pinned_trailing_column
        self.default_page_size = settings.default_page_size
        self.persist_extended = settings.persist_extended_state
        self._listeners: List[Listener] = []
        self._state = self._hydrate()

    # ── hydration ──────────────────────────────────────

    def _hydrate(self) -> ViewState:
        stored = self.store.get(self.table_id)
        self._has_record = stored is not None
        record = stored or {}
        table_state = record.get("tableState") or {}

        def load(key: str, parse: Callable[[Any], T], default: T, source=record) -> T:
            if source.get(key) is None:
                return default
            try:
                return parse(source[key])
            except (ValidationError, TypeError, ValueError) as e:
                logger.warning(f"Ignoring malformed persisted {key} for {self.table_id}: {e}")
                return default

        order = load("columnOrder", _ORDER.validate_python, self.column_ids)
        state = ViewState(
            column_order=normalize_column_order(order, self.column_ids, self.pinned),
            column_visibility=load("columnVisibility", _VISIBILITY.validate_python, {}),
            pagination=PaginationState(page_size=self.default_page_size),
        )

        if self.persist_extended:
            state.pagination = load("pagination", PaginationState.model_validate, state.pagination)
            state.row_selection = load("rowSelection", _row_selection, set())
            state.sorting = load("sorting", _SORTING.validate_python, [], table_state)
            state.column_filters = load("columnFilters", _FILTERS.validate_python, [], table_state)

        logger.info(f"Hydrated view state for {self.table_id} ({'stored' if record else 'defaults'})")
        return state

    # ── reading ────────────────────────────────────────

    @property
    def state(self) -> ViewState:
        return self._state.model_copy(deep=True)

    def query_descriptor(self) -> QueryDescriptor:
        return QueryDescriptor.from_view_state(self._state)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called after every committed mutation."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ── committing ─────────────────────────────────────

    def _persisted_patch(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        patch: Dict[str, Any] = {}
        if "column_order" in changes:
            patch["columnOrder"] = list(changes["column_order"])
        if "column_visibility" in changes:
            patch["columnVisibility"] = dict(changes["column_visibility"])

        if not self.persist_extended:
            return patch

        if "pagination" in changes:
            patch["pagination"] = changes["pagination"].model_dump(by_alias=True)
        if "row_selection" in changes:
            patch["rowSelection"] = sorted(changes["row_selection"])

        blob = {}
        if "sorting" in changes:
            blob["sorting"] = [s.model_dump(by_alias=True) for s in changes["sorting"]]
        if "column_filters" in changes:
            blob["columnFilters"] = [
                f.model_dump(mode="json", by_alias=True) for f in changes["column_filters"]
            ]
        if blob:
            patch["tableState"] = blob
        return patch

    def _commit(self, changes: Dict[str, Any]):
        state = self._state.model_copy(update=copy.deepcopy(changes))

        if not self._has_record:
            # First write for this table: persist the defaults with the change
            patch = self._persisted_patch({name: getattr(state, name) for name in ViewState.model_fields})
        else:
            patch = self._persisted_patch(changes)
        if patch:
            self.store.set(self.table_id, patch)
            self._has_record = True
        self._state = state

        changed = frozenset(changes)
        for listener in list(self._listeners):
            try:
                listener(self.table_id, changed, self.state)
            except Exception as e:
                logger.error(f"View state listener failed for {self.table_id}: {e}")

    def _update(self, field: str, updater: Updater, normalize: Callable[[Any], T]) -> T:
        previous = getattr(self._state, field)
        try:
            value = normalize(resolve_updater(updater, copy.deepcopy(previous)))
        except Exception as e:
            logger.warning(f"Rejected {field} update for {self.table_id}: {e}")
            return copy.deepcopy(previous)

        changes = {field: value}
        if field in RESETS_PAGE:
            if value == previous:
                return copy.deepcopy(previous)
            changes["pagination"] = self._state.pagination.model_copy(update={"page_index": 0})

        self._commit(changes)
        return copy.deepcopy(value)

    # ── field operations ───────────────────────────────

    def set_column_order(self, updater: Updater[List[str]]) -> List[str]:
        return self._update(
            "column_order",
            updater,
            lambda v: normalize_column_order(_ORDER.validate_python(v), self.column_ids, self.pinned),
        )

    def set_column_visibility(self, updater: Updater[Dict[str, bool]]) -> Dict[str, bool]:
        return self._update("column_visibility", updater, _VISIBILITY.validate_python)

    def set_pagination(self, updater: Updater[PaginationState]) -> PaginationState:
        return self._update("pagination", updater, _pagination)

    def set_sorting(self, updater: Updater[List[ColumnSort]]) -> List[ColumnSort]:
        return self._update("sorting", updater, _SORTING.validate_python)

    def set_column_filters(self, updater: Updater[List[ColumnFilter]]) -> List[ColumnFilter]:
        return self._update("column_filters", updater, _FILTERS.validate_python)

    def set_row_selection(self, updater: Updater[Set[str]]) -> Set[str]:
        return self._update("row_selection", updater, _row_selection)

    # ── convenience operations ─────────────────────────

    def set_page_index(self, page_index: int) -> PaginationState:
        return self.set_pagination(
            lambda p: PaginationState(page_index=page_index, page_size=p.page_size)
        )

    def set_page_size(self, page_size: int) -> PaginationState:
        """Change the page size, keeping the current top row on screen."""

        def resize(p: PaginationState) -> PaginationState:
            top_row = p.page_index * p.page_size
            return PaginationState(page_index=top_row // page_size, page_size=page_size)

        return self.set_pagination(resize)

    def set_column_filter(self, column_id: str, value: Any) -> List[ColumnFilter]:
        """Set or replace the filter of one column; an empty value removes it."""

        def apply(filters: List[ColumnFilter]) -> List[ColumnFilter]:
            remaining = [f for f in filters if f.column_id != column_id]
            if value is None or value == "" or value == []:
                return remaining
            existing = [f.column_id for f in filters]
            entry = ColumnFilter(column_id=column_id, value=value)
            if column_id in existing:
                # Keep the filter at its previous position
                return [entry if f.column_id == column_id else f for f in filters]
            return remaining + [entry]

        return self.set_column_filters(apply)

    def reset_column_filters(self) -> List[ColumnFilter]:
        return self.set_column_filters([])

    def toggle_sorting(self, column_id: str, multi: bool = False) -> List[ColumnSort]:
        """Cycle one column through ascending, descending and unsorted."""
        column = self.columns.get(column_id)
        if column is None or not column.sortable:
            logger.debug(f"Column {column_id} of {self.table_id} is not sortable")
            return list(self._state.sorting)

        def cycle(sorting: List[ColumnSort]) -> List[ColumnSort]:
            current = next((s for s in sorting if s.column_id == column_id), None)
            others = [s for s in sorting if s.column_id != column_id] if multi else []
            if current is None:
                return others + [ColumnSort(column_id=column_id, desc=False)]
            if not current.desc:
                flipped = ColumnSort(column_id=column_id, desc=True)
                return [flipped if s.column_id == column_id else s for s in sorting] if multi else [flipped]
            return others

        return self.set_sorting(cycle)

    def toggle_column_visibility(self, column_id: str) -> Dict[str, bool]:
        column = self.columns.get(column_id)
        if column is None or not column.hideable:
            logger.debug(f"Column {column_id} of {self.table_id} cannot be hidden")
            return dict(self._state.column_visibility)

        visible = self._state.is_visible(column_id)
        return self.set_column_visibility(lambda v: {**v, column_id: not visible})
