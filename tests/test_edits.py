"""Tests for structural edits and the fragments they produce."""

import pytest

from app.core import edits
from app.core.errors import NotFoundError
from app.core.patch import merge_fields, parse_fragment
from app.core.validation import validate_board
from app.schemas.board import BlockType, Comment


def apply(board, fragment):
    merged = merge_fields(board, parse_fragment(fragment))
    validate_board(merged)
    return merged


def column_ids(phase):
    return [c.id for c in phase.columns]


def test_add_phase_at_index(board_doc):
    fragment = edits.add_phase(board_doc, "Activate", index=1, phase_id="p9")
    assert list(fragment) == ["phases"]
    merged = apply(board_doc, fragment)
    assert [p.id for p in merged.phases] == ["p1", "p9", "p2"]


def test_move_phase(board_doc):
    merged = apply(board_doc, edits.move_phase(board_doc, "p2", 0))
    assert [p.id for p in merged.phases] == ["p2", "p1"]


def test_remove_phase_drops_its_blocks(board_doc):
    fragment = edits.remove_phase(board_doc, "p1")
    assert set(fragment) == {"phases", "blocks"}
    merged = apply(board_doc, fragment)
    assert [p.id for p in merged.phases] == ["p2"]
    assert [b.id for b in merged.blocks] == ["b2"]


def test_move_column_to_other_phase(board_doc):
    merged = apply(board_doc, edits.move_column(board_doc, "c2", "p2", index=0))
    assert column_ids(merged.phases[0]) == ["c1"]
    assert column_ids(merged.phases[1]) == ["c2", "c3"]


def test_remove_column_drops_its_blocks(board_doc):
    merged = apply(board_doc, edits.remove_column(board_doc, "c1"))
    assert column_ids(merged.phases[0]) == ["c2"]
    assert [b.id for b in merged.blocks] == ["b2"]


def test_add_block_needs_existing_column(board_doc):
    with pytest.raises(NotFoundError):
        edits.add_block(board_doc, "c9", "orphan")


def test_add_and_move_block(board_doc):
    board = apply(board_doc, edits.add_block(board_doc, "c1", "second", block_id="b3"))
    board = apply(board, edits.move_block(board, "b3", "c1", index=0))
    assert [b.id for b in board.blocks if b.column_id == "c1"] == ["b3", "b1"]

    board = apply(board, edits.move_block(board, "b1", "c3"))
    assert [b.id for b in board.blocks if b.column_id == "c3"] == ["b2", "b1"]


def test_update_block_keeps_comments(board_doc):
    merged = apply(
        board_doc,
        edits.update_block(board_doc, "b1", content="changed", type=BlockType.INSIGHT),
    )
    block = merged.blocks[0]
    assert block.content == "changed"
    assert block.type == BlockType.INSIGHT
    assert [c.id for c in block.comments] == ["k1"]


def test_remove_unknown_block(board_doc):
    with pytest.raises(NotFoundError):
        edits.remove_block(board_doc, "nope")


def test_storyboard_set_and_clear_together(board_doc):
    board = apply(board_doc, edits.set_storyboard(board_doc, "c2", "https://img.example/2.png", "checkout"))
    column = board.phases[0].columns[1]
    assert (column.storyboard_image_url, column.storyboard_prompt) == ("https://img.example/2.png", "checkout")

    board = apply(board, edits.clear_storyboard(board, "c2"))
    column = board.phases[0].columns[1]
    assert column.storyboard_image_url is None
    assert column.storyboard_prompt is None


def test_append_comment(board_doc):
    comment = Comment(id="k2", content="nice", user_id="u1", author_name="Ann")
    merged = apply(board_doc, edits.append_comment(board_doc, "b1", comment))
    assert [c.id for c in merged.blocks[0].comments] == ["k1", "k2"]


def test_set_status_accepts_any_transition(board_doc):
    assert edits.set_status(board_doc, "complete") == {"status": "complete"}
    board = apply(board_doc, edits.set_status(board_doc, "complete"))
    board = apply(board, edits.set_status(board, "draft"))
    assert board.status == "draft"


def test_rename_board(board_doc):
    fragment = edits.rename_board(board_doc, "Renewal journey")
    assert fragment == {"name": "Renewal journey"}
    merged = apply(board_doc, fragment)
    assert merged.name == "Renewal journey"
    assert merged.phases == board_doc.phases


def test_rename_phase_keeps_its_columns(board_doc):
    merged = apply(board_doc, edits.rename_phase(board_doc, "p2", "Onboard"))
    assert [p.name for p in merged.phases] == ["Discover", "Onboard"]
    assert column_ids(merged.phases[1]) == ["c3"]
    assert board_doc.phases[1].name == "Sign up"


def test_rename_column(board_doc):
    fragment = edits.rename_column(board_doc, "c2", "Compare plans")
    assert list(fragment) == ["phases"]
    merged = apply(board_doc, fragment)
    assert [c.name for c in merged.phases[0].columns] == ["", "Compare plans"]
    assert [b.column_id for b in merged.blocks] == ["c1", "c3"]


def test_rename_unknown_phase_or_column(board_doc):
    with pytest.raises(NotFoundError):
        edits.rename_phase(board_doc, "p9", "x")
    with pytest.raises(NotFoundError):
        edits.rename_column(board_doc, "c9", "x")
