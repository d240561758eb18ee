"""
Field-level replace merge for board fragments.

A fragment is a partial board document. Every top-level key it carries
replaces the stored field whole, lists included; keys it leaves out are not
touched. There is no per-element merge: a client that edits one block sends
every block, and an entity missing from a list it sends is deleted.

The same functions run on the server (authoritative) and in the client cache
(optimistic), so both sides agree on what a fragment means.
"""
import copy
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import ValidationError
from app.schemas.board import Block, BoardRead

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = ("name", "description", "status", "phases", "blocks")

# Echoed back by clients that resend a whole board; never written
READ_ONLY_FIELDS = ("id", "ownerId", "collaborators", "createdAt", "updatedAt")

_adapters = {
    name: TypeAdapter(BoardRead.model_fields[name].annotation) for name in PATCHABLE_FIELDS
}


@dataclass(frozen=True)
class ReplaceField:
    """Replace one top-level board field with `value` in its entirety."""

    name: str
    value: Any


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _format_loc(field: str, loc: tuple) -> str:
    path = field
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}"
    return path


def _to_validation_error(field: str, exc: PydanticValidationError) -> ValidationError:
    err = exc.errors()[0]
    expected = (err.get("ctx") or {}).get("expected") or err["type"]
    return ValidationError(err["msg"], path=_format_loc(field, err["loc"]), expected=str(expected))


def parse_fragment(fragment: Mapping[str, Any]) -> List[ReplaceField]:
    """Turn a JSON fragment into typed `ReplaceField` operations.

    Raises `ValidationError` for unknown keys, wrong types and values outside
    an enum. Read-only keys are dropped.
    """
    if not isinstance(fragment, Mapping):
        raise ValidationError("Fragment must be a JSON object", expected="object")

    fields = []
    for key, raw in fragment.items():
        if key in READ_ONLY_FIELDS:
            logger.debug(f"Ignoring read-only field '{key}' in fragment")
            continue
        adapter = _adapters.get(key)
        if adapter is None:
            raise ValidationError(
                f"Unknown board field '{key}'",
                path=key,
                expected=f"one of {', '.join(PATCHABLE_FIELDS)}",
            )
        try:
            value = adapter.validate_python(raw)
        except PydanticValidationError as e:
            raise _to_validation_error(key, e) from e
        fields.append(ReplaceField(key, value))
    return fields


def stamp_comments(stored: List[Block], incoming: List[Block], now: datetime) -> List[Block]:
    """Keep createdAt of comments already stored, stamp the others with `now`."""
    known = {
        (block.id, comment.id): comment.created_at
        for block in stored
        for comment in block.comments
    }
    stamped = []
    for block in incoming:
        comments = [
            comment.model_copy(
                update={"created_at": known.get((block.id, comment.id)) or now}
            )
            for comment in block.comments
        ]
        stamped.append(block.model_copy(update={"comments": comments}))
    return stamped


def merge_fields(
    board: BoardRead,
    fields: Iterable[ReplaceField],
    now: Optional[datetime] = None,
) -> BoardRead:
    """Apply replace operations to a copy of `board` and return it."""
    fields = list(fields)
    if not fields:
        return board

    now = now or utcnow()
    update: Dict[str, Any] = {}
    for field in fields:
        value = copy.deepcopy(field.value)
        if field.name == "blocks":
            value = stamp_comments(board.blocks, value, now)
        update[field.name] = value
    update["updated_at"] = now
    return board.model_copy(update=update, deep=True)


def extract_field(board: BoardRead, name: str) -> Dict[str, Any]:
    """Build the fragment that would write `name` back unchanged."""
    if name not in PATCHABLE_FIELDS:
        raise ValidationError(
            f"Unknown board field '{name}'",
            path=name,
            expected=f"one of {', '.join(PATCHABLE_FIELDS)}",
        )
    return board.model_dump(by_alias=True, mode="json", include={name})


def dump_entities(entities) -> List[Dict[str, Any]]:
    """JSON documents for a list of phases or blocks, as stored and sent."""
    return [e.model_dump(by_alias=True, mode="json", exclude_none=True) for e in entities]
