"""Column reordering from completed drag gestures."""

import logging
from typing import Dict, List, Optional

from datagrid.models.view_state import ColumnDescriptor

logger = logging.getLogger(__name__)


def array_move(items: List[str], from_index: int, to_index: int) -> List[str]:
    """Move one element to a new index, shifting the ones in between."""
    result = list(items)
    result.insert(to_index, result.pop(from_index))
    return result


class ReorderEngine:
    """Computes the next column order for a drag from one column onto another."""

    def __init__(self, columns: List[ColumnDescriptor]):
        self.columns: Dict[str, ColumnDescriptor] = {c.id: c for c in columns}

    def is_reorderable(self, column_id: str) -> bool:
        column = self.columns.get(column_id)
        return column is not None and column.reorderable

    def compute(
        self,
        source_column_id: Optional[str],
        target_column_id: Optional[str],
        current_order: List[str],
    ) -> List[str]:
        """Return the new order, or ``current_order`` when the move is rejected.

        A move is rejected when either id is missing or unknown, both ids are
        the same, or it would displace a column that is not reorderable: the
        source, the target and every column between them must be reorderable.
        """
        if not source_column_id or not target_column_id or source_column_id == target_column_id:
            return list(current_order)
        if source_column_id not in current_order or target_column_id not in current_order:
            logger.debug(f"Ignoring drag of {source_column_id} onto {target_column_id}: unknown column")
            return list(current_order)

        old_index = current_order.index(source_column_id)
        new_index = current_order.index(target_column_id)
        low, high = sorted((old_index, new_index))
        fixed = [c for c in current_order[low:high + 1] if not self.is_reorderable(c)]
        if fixed:
            logger.debug(f"Ignoring drag of {source_column_id} onto {target_column_id}: {fixed} cannot move")
            return list(current_order)

        return array_move(current_order, old_index, new_index)
