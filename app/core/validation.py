"""Invariant checks on a whole (merged) board document."""
from typing import List, Set

from app.core.errors import ValidationError
from app.schemas.board import BoardRead


def _check_id(entity_id: str, path: str, seen: Set[str], kind: str, problems: List[ValidationError]):
    if not entity_id:
        problems.append(
            ValidationError(f"New {kind} is missing its id", path=f"{path}.id", expected="non-empty id")
        )
    elif entity_id in seen:
        problems.append(
            ValidationError(f"Duplicate {kind} id '{entity_id}'", path=f"{path}.id", expected="unique id")
        )
    seen.add(entity_id)


def find_problems(board: BoardRead) -> List[ValidationError]:
    """Return every invariant violation in `board`, without raising."""
    problems: List[ValidationError] = []

    if not board.name.strip():
        problems.append(
            ValidationError("Board name must not be empty", path="name", expected="non-empty string")
        )

    phase_ids: Set[str] = set()
    column_ids: Set[str] = set()
    for i, phase in enumerate(board.phases):
        path = f"phases[{i}]"
        _check_id(phase.id, path, phase_ids, "phase", problems)
        for j, column in enumerate(phase.columns):
            column_path = f"{path}.columns[{j}]"
            # column ids are unique board-wide, blocks address them directly
            _check_id(column.id, column_path, column_ids, "column", problems)
            if bool(column.storyboard_image_url) != bool(column.storyboard_prompt):
                problems.append(
                    ValidationError(
                        "storyboardImageUrl and storyboardPrompt must be set or cleared together",
                        path=column_path,
                        expected="both storyboard fields or neither",
                    )
                )

    block_ids: Set[str] = set()
    for i, block in enumerate(board.blocks):
        path = f"blocks[{i}]"
        _check_id(block.id, path, block_ids, "block", problems)
        if block.column_id not in column_ids:
            problems.append(
                ValidationError(
                    f"Block '{block.id}' references unknown column '{block.column_id}'",
                    path=f"{path}.columnId",
                    expected="id of a column in phases",
                )
            )
        comment_ids: Set[str] = set()
        for j, comment in enumerate(block.comments):
            _check_id(comment.id, f"{path}.comments[{j}]", comment_ids, "comment", problems)

    return problems


def validate_board(board: BoardRead) -> None:
    """Raise the first `ValidationError` found in `board`."""
    problems = find_problems(board)
    if problems:
        raise problems[0]
