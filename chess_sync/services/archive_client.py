# chess_sync/services/archive_client.py
"""
Provides an async client for the public Chess.com game archive API.

The archive is organised per player as an ordered list of monthly archive
URLs, each returning one JSON document with the games played that month
(raw PGN plus metadata). The client is an async context manager owning one
`httpx.AsyncClient`; transport errors and 429/5xx responses are retried with
backoff, anything else is surfaced as an `ArchiveFetchError`.
"""

import time
from typing import Any, Dict, List, Optional

import httpx
import structlog

from chess_sync.config.settings import ArchiveSettings
from chess_sync.exceptions import ArchiveFetchError
from chess_sync.types import ArchiveGame, ArchivePlayer
from chess_sync.utils import metrics
from chess_sync.utils.retry import RetryPolicy, retry_with_backoff

logger = structlog.get_logger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class _TransientStatusError(Exception):
    """A response status worth retrying."""
    def __init__(self, status_code: int):
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


def determine_winner(game: ArchiveGame) -> Optional[str]:
    """Returns "white" or "black" for a decisive game, or None for any other result."""
    if game.white.result == "win":
        return "white"
    if game.black.result == "win":
        return "black"
    return None


def _parse_player(raw: Dict[str, Any]) -> ArchivePlayer:
    return ArchivePlayer(username=raw["username"], result=raw.get("result", ""))


def _parse_game(raw: Dict[str, Any]) -> ArchiveGame:
    """Maps one entry of an archive's `games` array to an `ArchiveGame`."""
    return ArchiveGame(
        url=raw["url"],
        pgn=raw.get("pgn", ""),
        time_control=raw.get("time_control", ""),
        time_class=raw.get("time_class", ""),
        rated=bool(raw.get("rated", False)),
        end_time=int(raw.get("end_time", 0)),
        white=_parse_player(raw["white"]),
        black=_parse_player(raw["black"]),
    )


class ChessComArchiveClient:
    """An `ArchiveClient` implementation backed by `httpx`."""

    def __init__(self, settings: ArchiveSettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initializes the client.

        Args:
            settings: Base URL, user agent, timeout and retry settings.
            transport: Optional custom transport (e.g. `httpx.MockTransport` in tests).
        """
        self._settings = settings
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._get_json = retry_with_backoff(
            RetryPolicy(attempts=settings.max_attempts, initial_backoff_s=settings.initial_backoff_s),
            retry_on=(httpx.TransportError, _TransientStatusError),
            system="archive_http",
            context_arg="url",
        )(self._get_json_once)

    async def __aenter__(self) -> "ChessComArchiveClient":
        self._client = httpx.AsyncClient(
            headers={"User-Agent": self._settings.user_agent, "Accept": "application/json"},
            timeout=self._settings.timeout_s,
            transport=self._transport,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_open(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("ChessComArchiveClient must be used as an async context manager.")
        return self._client

    async def _get_json_once(self, url: str) -> Dict[str, Any]:
        client = self._ensure_open()
        response = await client.get(url)
        if response.status_code in RETRYABLE_STATUS_CODES:
            raise _TransientStatusError(response.status_code)
        if response.is_error:
            raise ArchiveFetchError(f"Archive request failed with HTTP {response.status_code}", url, response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise ArchiveFetchError(f"Archive response is not valid JSON: {e}", url, response.status_code) from e

    async def _fetch(self, url: str) -> Dict[str, Any]:
        """Fetches a JSON document, translating exhausted retries into `ArchiveFetchError`."""
        try:
            return await self._get_json(url)
        except _TransientStatusError as e:
            raise ArchiveFetchError(f"Archive request kept failing with HTTP {e.status_code}", url, e.status_code) from e
        except httpx.HTTPError as e:
            raise ArchiveFetchError(f"Archive request failed: {e}", url) from e

    async def list_archives(self, username: str) -> List[str]:
        """
        Lists the monthly archive URLs of a player, oldest first.

        Raises:
            ArchiveFetchError: If the listing cannot be retrieved.
        """
        url = f"{self._settings.base_url}/player/{username.strip().lower()}/games/archives"
        data = await self._fetch(url)
        archives = data.get("archives", [])
        logger.info("Fetched archive listing.", username=username, archive_count=len(archives))
        return list(archives)

    async def fetch_archive(self, archive_url: str) -> List[ArchiveGame]:
        """
        Downloads one monthly archive and returns its games.

        Entries without the required fields are logged and skipped.

        Raises:
            ArchiveFetchError: If the archive cannot be retrieved.
        """
        started = time.perf_counter()
        data = await self._fetch(archive_url)
        metrics.ARCHIVE_FETCH_DURATION_SECONDS.observe(time.perf_counter() - started)

        games: List[ArchiveGame] = []
        for raw in data.get("games", []):
            try:
                games.append(_parse_game(raw))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed archive entry.", archive_url=archive_url, error=repr(e))
        logger.info("Fetched archive.", archive_url=archive_url, game_count=len(games))
        return games
