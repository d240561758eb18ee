"""
Async client for the board API with an optimistic local cache.

`submit` writes the fragment into the cached board before the request goes
out, then swaps in the server's canonical board when the response arrives.
A failed request leaves the optimistic board in place, marked
`diverged-on-error`, unless the client was built with `revert_on_error`.
Responses are applied in completion order: callers that fire several patches
at one board and care about ordering must wait for each before the next.
"""
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

import httpx

from app.client.cache import BoardCache, CacheEntry, EntryStatus
from app.core import edits
from app.core.errors import ERRORS_BY_NAME, ERRORS_BY_STATUS, BoardError, NotFoundError, ValidationError
from app.core.patch import merge_fields, parse_fragment
from app.core.validation import find_problems
from app.schemas.board import BoardRead, BoardSummary, Comment
from app.schemas.storyboard import StoryboardResponse

logger = logging.getLogger(__name__)


def error_from_response(response: httpx.Response) -> BoardError:
    """Rebuild the server's error from an error response."""
    try:
        data = response.json()
    except ValueError:
        data = {}
    if not isinstance(data, dict):
        data = {}

    cls = ERRORS_BY_NAME.get(data.get("error")) or ERRORS_BY_STATUS.get(response.status_code, BoardError)
    message = str(data.get("message") or data.get("detail") or response.text or response.reason_phrase)
    if cls is ValidationError:
        error = ValidationError(message, path=data.get("path") or "", expected=data.get("expected"))
    else:
        error = cls(message)
    error.status_code = response.status_code
    return error


class BoardClient:
    """
    Mutation client for one user.

    Args:
        base_url: API root, e.g. ``https://boards.example.com``.
        user_id, user_name: identity forwarded as ``X-User-Id`` / ``X-User-Name``.
        cache: shared `BoardCache`, a fresh one by default.
        notify: called with a short message after each non-silent success.
        revert_on_error: restore the pre-optimistic board when a request fails.
        transport: optional httpx transport (tests use ASGI or mock transports).
    """

    def __init__(
        self,
        base_url: str,
        user_id: str,
        user_name: str = "",
        cache: Optional[BoardCache] = None,
        notify: Optional[Callable[[str], None]] = None,
        revert_on_error: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.user_id = user_id
        self.user_name = user_name
        self.cache = cache if cache is not None else BoardCache()
        self.notify = notify or logger.info
        self.revert_on_error = revert_on_error
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers={"X-User-Id": user_id, "X-User-Name": user_name},
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        response = await self._http.request(method, url, **kwargs)
        if response.is_error:
            raise error_from_response(response)
        return response

    # --- Cache reconciliation --- #

    def _apply_optimistic(self, board_id: int, fragment: Mapping[str, Any]) -> Optional[CacheEntry]:
        """Merge `fragment` into the cached board. Returns the entry it replaced."""
        entry = self.cache.get(board_id)
        if entry is None:
            return None
        try:
            fields = parse_fragment(fragment)
        except ValidationError as e:
            # the server has the final word, send it anyway
            logger.warning(f"Board {board_id}: fragment failed local checks ({e}), not applied locally")
            return None

        merged = merge_fields(entry.board, fields)
        for problem in find_problems(merged):
            logger.warning(f"Board {board_id}: local check failed: {problem}")
        self.cache.set(board_id, merged, EntryStatus.OPTIMISTIC)
        return entry

    def _on_error(self, board_id: int, previous: Optional[CacheEntry]) -> None:
        if previous is None:
            return
        if self.revert_on_error:
            self.cache.set(board_id, previous.board, previous.status)
        else:
            self.cache.mark(board_id, EntryStatus.DIVERGED_ON_ERROR)

    def _on_success(self, board_id: int, board: BoardRead, message: str, silent: bool) -> BoardRead:
        self.cache.set(board_id, board, EntryStatus.CONFIRMED)
        if not silent:
            self.notify(message)
        return board

    # --- Read path --- #

    async def get_board(self, board_id: int, refresh: bool = False) -> BoardRead:
        """Cached board, fetched from the server on a miss or when `refresh` is set."""
        entry = self.cache.get(board_id)
        if entry is not None and not refresh:
            return entry.board
        response = await self._request("GET", f"/api/boards/{board_id}")
        board = BoardRead.model_validate(response.json())
        self.cache.set(board_id, board, EntryStatus.CONFIRMED)
        return board

    def invalidate(self, board_id: int) -> None:
        self.cache.invalidate(board_id)

    async def list_boards(self) -> List[BoardSummary]:
        response = await self._request("GET", "/api/boards")
        return [BoardSummary.model_validate(b) for b in response.json()]

    # --- Mutations --- #

    async def create_board(self, name: str, **fields) -> BoardRead:
        response = await self._request("POST", "/api/boards", json={"name": name, **fields})
        board = BoardRead.model_validate(response.json())
        return self._on_success(board.id, board, "Board created", silent=False)

    async def delete_board(self, board_id: int) -> None:
        await self._request("DELETE", f"/api/boards/{board_id}")
        self.cache.invalidate(board_id)
        self.notify("Board deleted")

    async def submit(self, board_id: int, fragment: Dict[str, Any], silent: bool = False) -> BoardRead:
        """Patch a board: optimistic local merge, then the canonical server copy."""
        previous = self._apply_optimistic(board_id, fragment)
        try:
            response = await self._request("PATCH", f"/api/boards/{board_id}", json=fragment)
        except (BoardError, httpx.HTTPError):
            self._on_error(board_id, previous)
            raise
        board = BoardRead.model_validate(response.json())
        return self._on_success(board_id, board, "Board saved", silent)

    async def edit(self, board_id: int, edit: Callable[..., Dict[str, Any]], *args, silent: bool = True, **kwargs) -> BoardRead:
        """Run a structural edit from `app.core.edits` on the cached board and submit it.

        Silent by default: reorders and drags fire often.
        """
        board = await self.get_board(board_id)
        fragment = edit(board, *args, **kwargs)
        return await self.submit(board_id, fragment, silent=silent)

    async def set_status(self, board_id: int, status, silent: bool = False) -> BoardRead:
        return await self.edit(board_id, edits.set_status, status, silent=silent)

    async def add_comment(self, board_id: int, block_id: str, content: str, silent: bool = False) -> BoardRead:
        comment = Comment(
            id=edits.new_id(),
            content=content,
            user_id=self.user_id,
            author_name=self.user_name,
        )

        previous = None
        entry = self.cache.get(board_id)
        if entry is not None:
            try:
                fragment = edits.append_comment(entry.board, block_id, comment)
            except NotFoundError:
                logger.warning(f"Block {block_id} not in cached board {board_id}, skipping local append")
            else:
                previous = self._apply_optimistic(board_id, fragment)

        body = {
            "id": comment.id,
            "content": content,
            "userId": self.user_id,
            "authorName": self.user_name,
        }
        try:
            response = await self._request(
                "POST", f"/api/boards/{board_id}/blocks/{block_id}/comments", json=body
            )
        except (BoardError, httpx.HTTPError):
            self._on_error(board_id, previous)
            raise
        board = BoardRead.model_validate(response.json())
        return self._on_success(board_id, board, "Comment added", silent)

    async def generate_storyboard(self, board_id: int, column_id: str, prompt: str) -> StoryboardResponse:
        """Ask the server to generate and attach a storyboard image.

        Nothing is applied locally first: the image URL only exists once the
        provider has answered.
        """
        response = await self._request(
            "POST",
            f"/api/boards/{board_id}/columns/{column_id}/generate-storyboard",
            json={"prompt": prompt},
        )
        result = StoryboardResponse.model_validate(response.json())
        self._on_success(board_id, result.board, "Storyboard generated", silent=False)
        return result

    async def clear_storyboard(self, board_id: int, column_id: str, silent: bool = False) -> BoardRead:
        previous = None
        entry = self.cache.get(board_id)
        if entry is not None:
            try:
                fragment = edits.clear_storyboard(entry.board, column_id)
            except NotFoundError:
                logger.warning(f"Column {column_id} not in cached board {board_id}, skipping local clear")
            else:
                previous = self._apply_optimistic(board_id, fragment)

        try:
            response = await self._request(
                "DELETE", f"/api/boards/{board_id}/columns/{column_id}/storyboard"
            )
        except (BoardError, httpx.HTTPError):
            self._on_error(board_id, previous)
            raise
        board = BoardRead.model_validate(response.json())
        return self._on_success(board_id, board, "Storyboard removed", silent)
