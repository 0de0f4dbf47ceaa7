"""
Client card session.

Drives one browsing session over a batch of discomfort cards:

    LOADING -> PRESENTING(0) -> PRESENTING(1) -> ... -> EXHAUSTED
    EXHAUSTED --regenerate()--> LOADING -> ...

The user can accept (save as a challenge), skip, or share the card on top.
Accepting persists through the challenge store chosen when the session was
created. A tiered store that drops to local storage mid-session is reported
to the user; a write that fails on every tier is reported too, and the
session still moves on, so one bad write never blocks browsing.
"""

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Protocol, Sequence, Tuple

import httpx

from zesty.schemas.cards import DiscomfortCard, GenerateCardsResponse
from zesty.schemas.challenges import Challenge
from zesty.schemas.preferences import Domain, PreferenceItem
from zesty.services.challenge_store import ChallengeStore, ChallengeStoreError

logger = logging.getLogger(__name__)

RETRY_LATER_MESSAGE = "No cards available right now. Please try again later."
SAVE_FAILED_MESSAGE = "Couldn't save this challenge. It was not added to your list."
SAVED_LOCALLY_MESSAGE = "Couldn't reach your account, so this challenge was saved on this device."


class SessionState(str, Enum):
    LOADING = "loading"
    PRESENTING = "presenting"
    EXHAUSTED = "exhausted"


class InvalidSessionTransition(Exception):
    """An action was attempted in a state that does not allow it."""

    def __init__(self, action: str, state: SessionState):
        super().__init__(f"Cannot {action} while session is {state.value}")
        self.action = action
        self.state = state


@dataclass(frozen=True)
class SharePayload:
    title: str
    text: str

    @property
    def clipboard_text(self) -> str:
        return f"{self.title}: {self.text}"


class CardSource(Protocol):
    async def fetch_cards(self) -> Sequence[DiscomfortCard]: ...


class ProxyCardSource:
    """Fetches card batches from a running Zesty proxy."""

    def __init__(
        self,
        base_url: str,
        preferences: Sequence[PreferenceItem],
        domains: Optional[Sequence[Domain]] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.preferences = list(preferences)
        self.domains = list(domains) if domains else None
        self.timeout = timeout
        self._transport = transport

    async def fetch_cards(self) -> List[DiscomfortCard]:
        payload: dict = {
            "userPreferences": [
                {"name": item.name, "type": item.domain.value} for item in self.preferences
            ]
        }
        if self.domains:
            payload["domains"] = [domain.value for domain in self.domains]

        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            response = await client.post("/api/zesty/generate-cards", json=payload)
            response.raise_for_status()

        return GenerateCardsResponse.model_validate(response.json()).cards


async def _call(func: Callable[..., Any], *args: Any) -> Any:
    result = func(*args)
    if inspect.isawaitable(result):
        return await result
    return result


class CardSession:
    """
    State machine for browsing one batch of cards.

    Args:
        card_source: Where batches come from (e.g. ProxyCardSource)
        store: Challenge store selected at session start
        notify: Called with user-facing messages
        native_share: Optional OS share hook, called with a SharePayload
        clipboard: Optional clipboard writer, called with a string
    """

    def __init__(
        self,
        card_source: CardSource,
        store: ChallengeStore,
        notify: Optional[Callable[[str], Any]] = None,
        native_share: Optional[Callable[[SharePayload], Any]] = None,
        clipboard: Optional[Callable[[str], Any]] = None,
    ):
        self.card_source = card_source
        self.store = store
        self.notify = notify or logger.info
        self.native_share = native_share
        self.clipboard = clipboard

        self.state = SessionState.LOADING
        self.index = 0
        self.cards: Tuple[DiscomfortCard, ...] = ()
        self.accepted: List[Challenge] = []

    @property
    def current_card(self) -> Optional[DiscomfortCard]:
        if self.state != SessionState.PRESENTING:
            return None
        return self.cards[self.index]

    @property
    def remaining(self) -> int:
        if self.state != SessionState.PRESENTING:
            return 0
        return len(self.cards) - self.index

    def _require(self, action: str, state: SessionState) -> None:
        if self.state != state:
            raise InvalidSessionTransition(action, self.state)

    def _advance(self) -> None:
        self.index += 1
        if self.index >= len(self.cards):
            self.state = SessionState.EXHAUSTED

    async def load(self) -> None:
        """Fetch a batch and present its first card."""
        self._require("load", SessionState.LOADING)

        try:
            cards = tuple(await self.card_source.fetch_cards())
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Card fetch failed: {type(e).__name__}: {e}")
            cards = ()

        self.cards = cards
        self.index = 0

        if not cards:
            self.state = SessionState.EXHAUSTED
            await _call(self.notify, RETRY_LATER_MESSAGE)
            return

        self.state = SessionState.PRESENTING

    async def accept(self) -> Challenge:
        """Save the current card as a challenge and move on."""
        self._require("accept", SessionState.PRESENTING)

        challenge = Challenge.from_card(self.cards[self.index])
        tier = self.store.name
        try:
            saved = await self.store.add(challenge)
            self.accepted.append(saved)
            if self.store.name != tier:
                await _call(self.notify, SAVED_LOCALLY_MESSAGE)
            else:
                await _call(self.notify, f'Added "{saved.title}" to your challenges')
        except ChallengeStoreError as e:
            logger.error(f"Failed to persist challenge via {self.store.name} store: {e}")
            await _call(self.notify, SAVE_FAILED_MESSAGE)
        finally:
            self._advance()

        return challenge

    def skip(self) -> None:
        """Move past the current card without saving it."""
        self._require("skip", SessionState.PRESENTING)
        self._advance()

    async def share(self) -> SharePayload:
        """
        Share the current card without moving on.

        Uses the native share hook when there is one, otherwise copies
        "<title>: <description>" to the clipboard.
        """
        self._require("share", SessionState.PRESENTING)

        card = self.cards[self.index]
        payload = SharePayload(title=card.title, text=card.description)

        if self.native_share is not None:
            try:
                await _call(self.native_share, payload)
                return payload
            except Exception as e:
                logger.info(f"Native share unavailable ({type(e).__name__}), copying instead")

        if self.clipboard is not None:
            await _call(self.clipboard, payload.clipboard_text)
            await _call(self.notify, "Copied to clipboard")

        return payload

    async def regenerate(self) -> None:
        """Start over with a fresh batch once the current one is used up."""
        self._require("regenerate", SessionState.EXHAUSTED)
        self.state = SessionState.LOADING
        await self.load()
