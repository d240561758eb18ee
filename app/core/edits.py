"""
Structural edits expressed as whole-collection fragments.

Each function takes the current board, recomputes the affected collection(s)
locally and returns a fragment ready for `PATCH /api/boards/{id}`. Removing a
phase or column also drops the blocks placed on it, in the same fragment, so
no block is left pointing at a column that no longer exists.
"""
import uuid
from typing import Any, Dict, List, Optional

from app.core.errors import NotFoundError
from app.core.patch import dump_entities
from app.schemas.board import Block, BlockType, BoardRead, BoardStatus, Column, Comment, Phase


def new_id() -> str:
    return str(uuid.uuid4())


def _copy(entities):
    return [e.model_copy(deep=True) for e in entities]


def _insert(items: list, item, index: Optional[int]) -> None:
    if index is None or index >= len(items):
        items.append(item)
    else:
        items.insert(max(index, 0), item)


def _phase_index(phases: List[Phase], phase_id: str) -> int:
    for i, phase in enumerate(phases):
        if phase.id == phase_id:
            return i
    raise NotFoundError(f"Phase '{phase_id}' not found")


def locate_column(phases: List[Phase], column_id: str):
    for phase in phases:
        for j, column in enumerate(phase.columns):
            if column.id == column_id:
                return phase, j
    raise NotFoundError(f"Column '{column_id}' not found")


def _block_index(blocks: List[Block], block_id: str) -> int:
    for i, block in enumerate(blocks):
        if block.id == block_id:
            return i
    raise NotFoundError(f"Block '{block_id}' not found")


def _fragment(phases=None, blocks=None) -> Dict[str, Any]:
    fragment: Dict[str, Any] = {}
    if phases is not None:
        fragment["phases"] = dump_entities(phases)
    if blocks is not None:
        fragment["blocks"] = dump_entities(blocks)
    return fragment


# --- Board fields --- #


def set_status(board: BoardRead, status) -> Dict[str, Any]:
    # any status may follow any other, the server checks enum membership
    if isinstance(status, BoardStatus):
        status = status.value
    return {"status": status}


def rename_board(board: BoardRead, name: str) -> Dict[str, Any]:
    return {"name": name}


# --- Phases --- #


def add_phase(board: BoardRead, name: str = "", index: Optional[int] = None, phase_id: Optional[str] = None):
    phases = _copy(board.phases)
    _insert(phases, Phase(id=phase_id or new_id(), name=name), index)
    return _fragment(phases=phases)


def rename_phase(board: BoardRead, phase_id: str, name: str):
    phases = _copy(board.phases)
    phases[_phase_index(phases, phase_id)].name = name
    return _fragment(phases=phases)


def move_phase(board: BoardRead, phase_id: str, index: int):
    phases = _copy(board.phases)
    phase = phases.pop(_phase_index(phases, phase_id))
    _insert(phases, phase, index)
    return _fragment(phases=phases)


def remove_phase(board: BoardRead, phase_id: str):
    phases = _copy(board.phases)
    removed = phases.pop(_phase_index(phases, phase_id))
    dropped = {c.id for c in removed.columns}
    blocks = [b for b in _copy(board.blocks) if b.column_id not in dropped]
    return _fragment(phases=phases, blocks=blocks)


# --- Columns --- #


def add_column(
    board: BoardRead,
    phase_id: str,
    name: str = "",
    index: Optional[int] = None,
    column_id: Optional[str] = None,
):
    phases = _copy(board.phases)
    phase = phases[_phase_index(phases, phase_id)]
    _insert(phase.columns, Column(id=column_id or new_id(), name=name), index)
    return _fragment(phases=phases)


def rename_column(board: BoardRead, column_id: str, name: str):
    phases = _copy(board.phases)
    phase, j = locate_column(phases, column_id)
    phase.columns[j].name = name
    return _fragment(phases=phases)


def move_column(board: BoardRead, column_id: str, phase_id: str, index: Optional[int] = None):
    """Move a column within its phase or into another one."""
    phases = _copy(board.phases)
    source, j = locate_column(phases, column_id)
    column = source.columns.pop(j)
    target = phases[_phase_index(phases, phase_id)]
    _insert(target.columns, column, index)
    return _fragment(phases=phases)


def remove_column(board: BoardRead, column_id: str):
    phases = _copy(board.phases)
    phase, j = locate_column(phases, column_id)
    phase.columns.pop(j)
    blocks = [b for b in _copy(board.blocks) if b.column_id != column_id]
    return _fragment(phases=phases, blocks=blocks)


def set_storyboard(board: BoardRead, column_id: str, image_url: str, prompt: str):
    phases = _copy(board.phases)
    phase, j = locate_column(phases, column_id)
    phase.columns[j].storyboard_image_url = image_url
    phase.columns[j].storyboard_prompt = prompt
    return _fragment(phases=phases)


def clear_storyboard(board: BoardRead, column_id: str):
    phases = _copy(board.phases)
    phase, j = locate_column(phases, column_id)
    phase.columns[j].storyboard_image_url = None
    phase.columns[j].storyboard_prompt = None
    return _fragment(phases=phases)


# --- Blocks --- #


def add_block(
    board: BoardRead,
    column_id: str,
    content: str = "",
    type: BlockType = BlockType.TOUCHPOINT,
    block_id: Optional[str] = None,
):
    locate_column(board.phases, column_id)
    blocks = _copy(board.blocks)
    blocks.append(Block(id=block_id or new_id(), column_id=column_id, content=content, type=type))
    return _fragment(blocks=blocks)


def update_block(board: BoardRead, block_id: str, **changes):
    """Change block attributes, given by their snake_case names."""
    blocks = _copy(board.blocks)
    i = _block_index(blocks, block_id)
    data = blocks[i].model_dump()
    data.update(changes)
    data["id"] = block_id
    blocks[i] = Block.model_validate(data)
    return _fragment(blocks=blocks)


def move_block(board: BoardRead, block_id: str, column_id: str, index: Optional[int] = None):
    """Move a block onto `column_id`, at `index` among that column's blocks."""
    locate_column(board.phases, column_id)
    blocks = _copy(board.blocks)
    block = blocks.pop(_block_index(blocks, block_id))
    block.column_id = column_id

    positions = [i for i, b in enumerate(blocks) if b.column_id == column_id]
    if index is None or index >= len(positions):
        at = positions[-1] + 1 if positions else len(blocks)
    else:
        at = positions[max(index, 0)]
    blocks.insert(at, block)
    return _fragment(blocks=blocks)


def remove_block(board: BoardRead, block_id: str):
    blocks = _copy(board.blocks)
    blocks.pop(_block_index(blocks, block_id))
    return _fragment(blocks=blocks)


# --- Comments --- #


def append_comment(board: BoardRead, block_id: str, comment: Comment):
    blocks = _copy(board.blocks)
    blocks[_block_index(blocks, block_id)].comments.append(comment)
    return _fragment(blocks=blocks)
