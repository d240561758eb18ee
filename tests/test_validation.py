"""Tests for board invariant checks."""

import pytest

from app.core.errors import ValidationError
from app.core.validation import find_problems, validate_board
from app.schemas.board import Block, Column, Phase


def test_valid_board_passes(board_doc):
    validate_board(board_doc)
    assert find_problems(board_doc) == []


def test_block_on_unknown_column_is_rejected(board_doc):
    board_doc.blocks.append(Block(id="b3", column_id="c9"))
    with pytest.raises(ValidationError) as exc:
        validate_board(board_doc)
    assert exc.value.path == "blocks[2].columnId"
    assert "c9" in exc.value.message


def test_column_ids_are_unique_across_phases(board_doc):
    board_doc.phases[1].columns.append(Column(id="c1"))
    with pytest.raises(ValidationError) as exc:
        validate_board(board_doc)
    assert exc.value.path == "phases[1].columns[1].id"


def test_missing_id_on_new_phase(board_doc):
    board_doc.phases.append(Phase(id=""))
    with pytest.raises(ValidationError) as exc:
        validate_board(board_doc)
    assert exc.value.path == "phases[2].id"


def test_duplicate_comment_id_in_block(board_doc):
    comment = board_doc.blocks[0].comments[0].model_copy()
    board_doc.blocks[0].comments.append(comment)
    with pytest.raises(ValidationError) as exc:
        validate_board(board_doc)
    assert exc.value.path == "blocks[0].comments[1].id"


@pytest.mark.parametrize(
    "url, prompt",
    [("https://img.example/1.png", None), (None, "a user searching")],
)
def test_storyboard_half_set_is_rejected(board_doc, url, prompt):
    column = board_doc.phases[0].columns[0]
    column.storyboard_image_url = url
    column.storyboard_prompt = prompt
    with pytest.raises(ValidationError) as exc:
        validate_board(board_doc)
    assert exc.value.path == "phases[0].columns[0]"


def test_storyboard_pair_is_accepted(board_doc):
    column = board_doc.phases[0].columns[0]
    column.storyboard_image_url = "https://img.example/1.png"
    column.storyboard_prompt = "a user searching"
    validate_board(board_doc)


def test_blank_name_is_rejected(board_doc):
    board_doc.name = "  "
    with pytest.raises(ValidationError) as exc:
        validate_board(board_doc)
    assert exc.value.path == "name"


def test_find_problems_collects_everything(board_doc):
    board_doc.blocks.append(Block(id="b1", column_id="c9"))
    problems = find_problems(board_doc)
    assert [p.path for p in problems] == ["blocks[2].id", "blocks[2].columnId"]
