"""
Block editor: CRUD and reordering over a block sequence.

The editor owns the canonical in-memory sequence and reports every change
to its host through `on_change`. Persisting the sequence is the host's job.
"""

import logging
from typing import Any, Callable, Optional

from .models import Block, new_block_id

logger = logging.getLogger(__name__)


# Block types offered by the editor toolbar, in display order
TOOLBAR_BLOCK_TYPES: list[tuple[str, str]] = [
    ("p", "Paragraph"),
    ("h2", "Heading"),
    ("image", "Image"),
    ("code", "Code"),
]


def array_move(items: list, old_index: int, new_index: int) -> list:
    """
    Return a copy of `items` with the element at old_index moved to new_index.

    All other elements keep their relative order.
    """
    result = list(items)
    if not result:
        return result
    item = result.pop(old_index)
    result.insert(new_index, item)
    return result


class BlockEditor:
    """
    Stateful editor over an ordered list of blocks.

    Identifiers come from `id_factory` and are never reused: a block that is
    removed and re-added under the same type gets a new id.
    """

    def __init__(
        self,
        blocks: Optional[list[Block]] = None,
        on_change: Optional[Callable[[list[Block]], None]] = None,
        id_factory: Callable[[], str] = new_block_id,
    ):
        self._blocks: list[Block] = list(blocks or [])
        self._on_change = on_change
        self._id_factory = id_factory
        self._issued_ids: set[str] = {block.id for block in self._blocks}

    @property
    def blocks(self) -> list[Block]:
        """Current block sequence (a copy)."""
        return list(self._blocks)

    def index_of(self, block_id: str) -> int:
        """Position of a block, or -1 when absent."""
        for index, block in enumerate(self._blocks):
            if block.id == block_id:
                return index
        return -1

    def get(self, block_id: str) -> Optional[Block]:
        """Look up a block by id."""
        index = self.index_of(block_id)
        return self._blocks[index] if index >= 0 else None

    def _fresh_id(self) -> str:
        block_id = self._id_factory()
        while block_id in self._issued_ids:
            logger.warning(f"Block id factory returned a used id: {block_id}")
            block_id = self._id_factory()
        self._issued_ids.add(block_id)
        return block_id

    def _commit(self, blocks: list[Block]) -> None:
        self._blocks = blocks
        if self._on_change is not None:
            self._on_change(list(blocks))

    def append(self, block_type: str) -> Block:
        """Add an empty block of the given type at the end."""
        block = Block.create(block_type, block_id=self._fresh_id())
        self._commit(self._blocks + [block])
        return block

    def update(self, block_id: str, updates: Optional[dict[str, Any]] = None, **fields) -> bool:
        """
        Merge a partial payload into a block.

        Args:
            block_id: Block to update.
            updates: Partial payload (e.g. {"text": "..."}).
            **fields: Same as `updates`, as keyword arguments.

        Returns:
            True if the block existed, False (and no notification) otherwise.
        """
        changes = dict(updates or {})
        changes.update(fields)
        changes.pop("id", None)

        index = self.index_of(block_id)
        if index < 0:
            return False

        blocks = list(self._blocks)
        blocks[index] = blocks[index].merged(changes)
        self._commit(blocks)
        return True

    def remove(self, block_id: str) -> bool:
        """Delete a block. Returns False if it was not present."""
        if self.index_of(block_id) < 0:
            return False
        self._commit([block for block in self._blocks if block.id != block_id])
        return True

    def move(self, old_index: int, new_index: int) -> None:
        """Move the block at old_index to new_index."""
        size = len(self._blocks)
        if not (0 <= old_index < size and 0 <= new_index < size):
            raise IndexError(f"move({old_index}, {new_index}) out of range for {size} blocks")
        if old_index == new_index:
            return
        self._commit(array_move(self._blocks, old_index, new_index))

    def handle_drag_end(self, active_id: str, over_id: Optional[str]) -> bool:
        """
        Apply the result of a drag gesture.

        Dropping outside any block (over_id is None), onto itself, or with
        an id that is no longer present leaves the order unchanged.

        Returns:
            True if the order changed.
        """
        if over_id is None or active_id == over_id:
            return False

        old_index = self.index_of(active_id)
        new_index = self.index_of(over_id)
        if old_index < 0 or new_index < 0:
            logger.warning(f"Drag ended on unknown block(s): {active_id} -> {over_id}")
            return False

        self.move(old_index, new_index)
        return True
