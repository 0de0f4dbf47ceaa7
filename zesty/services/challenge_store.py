"""
Challenge repository with two tiers.

- SupabaseChallengeStore: primary tier, the `recommendations` table, scoped
  to the signed-in user by RLS.
- LocalChallengeStore: a JSON file on the local device, used when Supabase
  is not configured or not reachable.

select_challenge_store() checks Supabase once per session. When it is
reachable the session gets a TieredChallengeStore: Supabase first, and the
local file once a Supabase write fails. After that first failure the session
stays on the local tier, and list() shows both tiers together.

All stores expose the same async operations: add, list, complete,
reactivate, remove.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, cast

from pydantic import ValidationError
from supabase import Client

from zesty.schemas.challenges import Challenge
from zesty.utils.constants import LOCAL_CHALLENGES_NAMESPACE

logger = logging.getLogger(__name__)

RECOMMENDATIONS_TABLE = "recommendations"


class ChallengeStoreError(Exception):
    """The store could not read or persist challenges."""


class ChallengeNotFoundError(ChallengeStoreError):
    """No challenge with the given id exists for this user."""

    def __init__(self, challenge_id: str):
        super().__init__(f"Challenge {challenge_id} not found")
        self.challenge_id = challenge_id


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ChallengeStore(Protocol):
    name: str

    async def add(self, challenge: Challenge) -> Challenge: ...

    async def list(self) -> List[Challenge]: ...

    async def complete(self, challenge_id: str, user_rating: Optional[int] = None) -> Challenge: ...

    async def reactivate(self, challenge_id: str) -> Challenge: ...

    async def remove(self, challenge_id: str) -> None: ...


# =============================================================================
# Supabase tier
# =============================================================================

def challenge_to_row(challenge: Challenge, user_id: str) -> Dict[str, Any]:
    """Map a Challenge onto a `recommendations` row."""
    return {
        "id": challenge.id,
        "user_id": user_id,
        "qloo_entity_id": challenge.source_card_id,
        "title": challenge.title,
        "domain": challenge.domain.value,
        "difficulty_level": challenge.difficulty,
        "description": challenge.description,
        "gemini_explanation": challenge.explanation,
        "image_url": challenge.image_url,
        "is_completed": challenge.is_completed,
        "user_rating": challenge.user_rating,
        "created_at": challenge.created_at,
        "completed_at": challenge.completed_at,
    }


def row_to_challenge(row: Dict[str, Any]) -> Challenge:
    """Map a `recommendations` row back to a Challenge."""
    return Challenge(
        id=str(row["id"]),
        title=row["title"],
        description=row.get("description") or "",
        domain=row["domain"],
        difficulty=row.get("difficulty_level") or 3,
        explanation=row.get("gemini_explanation"),
        image_url=row.get("image_url"),
        source_card_id=row.get("qloo_entity_id"),
        is_completed=bool(row.get("is_completed")),
        user_rating=row.get("user_rating"),
        created_at=row.get("created_at") or _utc_now_iso(),
        completed_at=row.get("completed_at"),
    )


class SupabaseChallengeStore:
    """Challenges stored in Supabase `recommendations` (RLS scoped)."""

    name = "supabase"

    def __init__(self, supabase_client: Client, user_id: str):
        self.client = supabase_client
        self.user_id = user_id

    def _update(self, challenge_id: str, values: Dict[str, Any]) -> Challenge:
        try:
            result = (
                self.client.table(RECOMMENDATIONS_TABLE)
                .update(values)
                .eq("id", challenge_id)
                .eq("user_id", self.user_id)
                .execute()
            )
        except Exception as e:
            raise ChallengeStoreError(f"Failed to update challenge {challenge_id}") from e

        if not result.data:
            raise ChallengeNotFoundError(challenge_id)

        return row_to_challenge(cast(Dict[str, Any], result.data[0]))

    async def add(self, challenge: Challenge) -> Challenge:
        logger.info(f"Saving challenge for user {self.user_id}: domain={challenge.domain.value}")
        try:
            result = (
                self.client.table(RECOMMENDATIONS_TABLE)
                .insert(challenge_to_row(challenge, self.user_id))
                .execute()
            )
        except Exception as e:
            raise ChallengeStoreError("Failed to save challenge") from e

        if not result.data:
            raise ChallengeStoreError("Failed to save challenge: no data returned")

        return row_to_challenge(cast(Dict[str, Any], result.data[0]))

    async def list(self) -> List[Challenge]:
        try:
            result = (
                self.client.table(RECOMMENDATIONS_TABLE)
                .select("*")
                .eq("user_id", self.user_id)
                .order("created_at", desc=False)
                .execute()
            )
        except Exception as e:
            raise ChallengeStoreError("Failed to fetch challenges") from e

        return [row_to_challenge(cast(Dict[str, Any], row)) for row in result.data or []]

    async def complete(self, challenge_id: str, user_rating: Optional[int] = None) -> Challenge:
        values: Dict[str, Any] = {"is_completed": True, "completed_at": _utc_now_iso()}
        if user_rating is not None:
            values["user_rating"] = user_rating
        return self._update(challenge_id, values)

    async def reactivate(self, challenge_id: str) -> Challenge:
        return self._update(challenge_id, {"is_completed": False, "completed_at": None})

    async def remove(self, challenge_id: str) -> None:
        try:
            result = (
                self.client.table(RECOMMENDATIONS_TABLE)
                .delete()
                .eq("id", challenge_id)
                .eq("user_id", self.user_id)
                .execute()
            )
        except Exception as e:
            raise ChallengeStoreError(f"Failed to delete challenge {challenge_id}") from e

        if not result.data:
            raise ChallengeNotFoundError(challenge_id)


# =============================================================================
# Local tier
# =============================================================================

class LocalChallengeStore:
    """
    Challenges kept in a JSON file on this device.

    The file is `<data_dir>/zesty_challenges.json` and holds a list of
    challenge objects in insertion order. Writes replace the file atomically.
    """

    name = "local"

    def __init__(self, data_dir: Path):
        self.path = Path(data_dir) / f"{LOCAL_CHALLENGES_NAMESPACE}.json"

    def _load(self) -> List[Challenge]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ChallengeStoreError(f"Could not read {self.path}") from e

        if not isinstance(raw, list):
            raise ChallengeStoreError(f"{self.path} does not contain a challenge list")

        try:
            return [Challenge.model_validate(item) for item in raw]
        except ValidationError as e:
            raise ChallengeStoreError(f"{self.path} holds a malformed challenge") from e

    def _save(self, challenges: List[Challenge]) -> None:
        payload = json.dumps([c.model_dump(mode="json") for c in challenges], ensure_ascii=False, indent=2)
        tmp_path: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    logger.warning(f"Could not remove temp file {tmp_path}")
            raise ChallengeStoreError(f"Could not write {self.path}") from e

    def _replace(self, challenge_id: str, **changes: Any) -> Challenge:
        challenges = self._load()
        for index, challenge in enumerate(challenges):
            if challenge.id == challenge_id:
                updated = challenge.model_copy(update=changes)
                challenges[index] = updated
                self._save(challenges)
                return updated
        raise ChallengeNotFoundError(challenge_id)

    async def add(self, challenge: Challenge) -> Challenge:
        challenges = self._load()
        challenges.append(challenge)
        self._save(challenges)
        logger.info(f"Saved challenge locally: domain={challenge.domain.value}")
        return challenge

    async def list(self) -> List[Challenge]:
        return self._load()

    async def complete(self, challenge_id: str, user_rating: Optional[int] = None) -> Challenge:
        changes: Dict[str, Any] = {"is_completed": True, "completed_at": _utc_now_iso()}
        if user_rating is not None:
            changes["user_rating"] = user_rating
        return self._replace(challenge_id, **changes)

    async def reactivate(self, challenge_id: str) -> Challenge:
        return self._replace(challenge_id, is_completed=False, completed_at=None)

    async def remove(self, challenge_id: str) -> None:
        challenges = self._load()
        kept = [c for c in challenges if c.id != challenge_id]
        if len(kept) == len(challenges):
            raise ChallengeNotFoundError(challenge_id)
        self._save(kept)


# =============================================================================
# Primary tier with local fallback
# =============================================================================

class TieredChallengeStore:
    """
    Supabase with the local file behind it.

    Any ChallengeStoreError from the primary other than "not found" marks the
    primary as degraded; from then on every operation goes to the local tier.
    Ids not found in the primary are looked up locally, since challenges
    saved while degraded live there.
    """

    def __init__(self, primary: ChallengeStore, fallback: ChallengeStore):
        self.primary = primary
        self.fallback = fallback
        self.degraded = False

    @property
    def name(self) -> str:
        return self.fallback.name if self.degraded else self.primary.name

    def _degrade(self, error: ChallengeStoreError) -> None:
        if not self.degraded:
            logger.warning(
                f"{self.primary.name} challenge store failed ({error}), "
                f"falling back to {self.fallback.name}"
            )
        self.degraded = True

    async def add(self, challenge: Challenge) -> Challenge:
        if not self.degraded:
            try:
                return await self.primary.add(challenge)
            except ChallengeNotFoundError:
                raise
            except ChallengeStoreError as e:
                self._degrade(e)
        return await self.fallback.add(challenge)

    async def list(self) -> List[Challenge]:
        challenges: List[Challenge] = []
        if not self.degraded:
            try:
                challenges = await self.primary.list()
            except ChallengeStoreError as e:
                self._degrade(e)
        seen = {c.id for c in challenges}
        challenges.extend(c for c in await self.fallback.list() if c.id not in seen)
        return challenges

    async def _route(self, operation: str, *args: Any) -> Any:
        if not self.degraded:
            try:
                return await getattr(self.primary, operation)(*args)
            except ChallengeNotFoundError:
                pass
            except ChallengeStoreError as e:
                self._degrade(e)
        return await getattr(self.fallback, operation)(*args)

    async def complete(self, challenge_id: str, user_rating: Optional[int] = None) -> Challenge:
        return await self._route("complete", challenge_id, user_rating)

    async def reactivate(self, challenge_id: str) -> Challenge:
        return await self._route("reactivate", challenge_id)

    async def remove(self, challenge_id: str) -> None:
        await self._route("remove", challenge_id)


async def select_challenge_store(
    data_dir: Path,
    supabase_client: Optional[Client] = None,
    user_id: Optional[str] = None,
) -> ChallengeStore:
    """
    Pick the store for a session with one capability check.

    Supabase (with the local store behind it) is used when a client and user
    are available and a cheap read succeeds; otherwise challenges go straight
    to the local store.
    """
    local = LocalChallengeStore(data_dir)
    if supabase_client is not None and user_id:
        store = TieredChallengeStore(SupabaseChallengeStore(supabase_client, user_id), local)
        try:
            (
                supabase_client.table(RECOMMENDATIONS_TABLE)
                .select("id")
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
            logger.info("Using Supabase challenge store")
            return store
        except Exception as e:
            logger.warning(f"Supabase unavailable ({type(e).__name__}), using local challenge store")

    logger.info(f"Using local challenge store at {data_dir}")
    return local
