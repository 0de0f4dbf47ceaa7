"""
Taste Graph Client - Qloo over HTTP

Thin async wrapper around the Qloo taste graph used to find the entity a
user likes and the entities "far" from it.

Two layers:
- Low-level calls (search, insights, related) return a Result so callers
  can tell a missing key from a timeout from an empty answer.
- Convenience helpers (search_entity, get_recommendations, get_antitheses)
  never raise: they log the failure and return None or an empty list.

Antitheses are a HEURISTIC. The graph has no "opposite taste" relation, so
we fetch a related-entities list with a raised limit and keep its least
similar tail. Treat the result as "dissimilar but still topical", never as a
verified opposite.
"""

import hashlib
import logging
import re
from typing import Any, Dict, List, Optional, Union

import httpx

from zesty.config import settings
from zesty.schemas.preferences import Domain, normalize_domain
from zesty.schemas.taste import TasteEntity
from zesty.utils.constants import GRAPH_ENTITY_TYPES
from zesty.utils.results import FailureKind, Result

logger = logging.getLogger(__name__)

# Related-set size requested when approximating antitheses
ANTITHESIS_FETCH_LIMIT = 10
# How many of the lowest-ranked related entities count as antitheses
ANTITHESIS_TAIL_SIZE = 5


def graph_types_for(domain_or_type: Union[Domain, str]) -> str:
    """
    Resolve the `types` filter sent to the graph.

    Domains map through GRAPH_ENTITY_TYPES (movies also search TV shows);
    anything else is passed through as a raw graph type string.
    """
    domain = normalize_domain(domain_or_type)
    if domain is None:
        return str(domain_or_type)
    if domain is Domain.MOVIE:
        return f"{GRAPH_ENTITY_TYPES['movie']},urn:entity:tv_show"
    return GRAPH_ENTITY_TYPES[domain.value]


def parse_entity(raw: Any, domain: Optional[Domain] = None) -> Optional[TasteEntity]:
    """
    Normalize one raw graph entity.

    Search results use `entity_id` and a `types` list while insights
    results may use `id` and `type`; both are accepted. Entities without an
    id or a name are dropped.
    """
    if not isinstance(raw, dict):
        return None

    entity_id = raw.get("entity_id") or raw.get("id")
    name = raw.get("name")
    if not entity_id or not name:
        return None

    raw_type = raw.get("type")
    if not raw_type and isinstance(raw.get("types"), list) and raw["types"]:
        raw_type = raw["types"][0]

    properties = raw.get("properties") if isinstance(raw.get("properties"), dict) else {}
    image = properties.get("image")
    image_url = image.get("url") if isinstance(image, dict) else raw.get("image_url")

    tags: List[str] = []
    for tag in raw.get("tags") or []:
        if isinstance(tag, dict) and tag.get("name"):
            tags.append(str(tag["name"]))
        elif isinstance(tag, str):
            tags.append(tag)

    metadata: Dict[str, Any] = dict(properties)
    if "popularity" in raw:
        metadata["popularity"] = raw["popularity"]

    return TasteEntity(
        id=str(entity_id),
        name=str(name),
        type=raw_type,
        domain=domain or normalize_domain(raw_type),
        image_url=image_url,
        tags=tags,
        metadata=metadata,
    )


def _extract_entity_list(data: Any) -> List[Any]:
    """Find the entity list in a search or insights payload."""
    if isinstance(data, list):
        return data
    if not isinstance(data, dict):
        return []

    for key in ("related", "results", "entities"):
        value = data.get(key)
        if isinstance(value, list):
            return value
        if isinstance(value, dict) and isinstance(value.get("entities"), list):
            return value["entities"]

    return []


def approximate_antitheses(
    related: List[TasteEntity],
    tail_size: int = ANTITHESIS_TAIL_SIZE
) -> List[TasteEntity]:
    """
    Approximate "opposite" entities as the least similar tail of a
    similarity-ranked list.

    This is a heuristic: the tail is dissimilar relative to the rest of the
    list, not a proven antonym of the seed entity.
    """
    if tail_size <= 0:
        return []
    return list(related[-tail_size:])


def build_mock_entity(query: str, entity_type: str, reason: Optional[str] = None) -> TasteEntity:
    """
    Build the synthetic search result returned when the graph is unavailable.

    The id is derived from (type, query) so repeated calls are stable.
    """
    digest = hashlib.sha1(f"{entity_type}:{query}".lower().encode("utf-8")).hexdigest()[:12]
    type_slug = re.sub(r"[^a-z0-9]+", "-", entity_type.lower()).strip("-") or "entity"

    metadata: Dict[str, Any] = {"mock": True}
    if reason:
        metadata["error"] = reason

    raw_type = entity_type if entity_type.startswith("urn:") else f"urn:entity:{entity_type}"

    return TasteEntity(
        id=f"mock-{type_slug}-{digest}",
        name=query,
        type=raw_type,
        domain=normalize_domain(entity_type),
        metadata=metadata,
    )


class TasteGraphClient:
    """Client for the Qloo taste graph API."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Result[Any]:
        """Send a request to the graph and decode its JSON body."""
        if not self.is_configured:
            return Result.fail(FailureKind.NOT_CONFIGURED, "QLOO_API_KEY not configured")

        headers = {
            "X-Api-Key": self.api_key,
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(
                    method=method,
                    url=endpoint,
                    params=params,
                    json=data,
                    headers=headers,
                )
                response.raise_for_status()
        except httpx.TimeoutException:
            return Result.fail(FailureKind.TIMEOUT, f"{method} {endpoint} timed out after {self.timeout}s")
        except httpx.HTTPStatusError as e:
            return Result.fail(
                FailureKind.UPSTREAM_ERROR,
                f"{method} {endpoint} returned HTTP {e.response.status_code}"
            )
        except httpx.HTTPError as e:
            return Result.fail(FailureKind.UPSTREAM_ERROR, f"{method} {endpoint} failed: {type(e).__name__}")

        try:
            return Result.success(response.json() if response.content else {})
        except ValueError:
            return Result.fail(FailureKind.MALFORMED_RESPONSE, f"{method} {endpoint} returned non-JSON body")

    async def search(
        self,
        query: str,
        domain_or_type: Union[Domain, str]
    ) -> Result[List[TasteEntity]]:
        """Search entities matching a free-text query, best match first."""
        result = await self._request(
            "GET",
            "/search",
            params={"query": query, "types": graph_types_for(domain_or_type)},
        )
        if not result.ok:
            return Result.fail(result.failure, result.detail)

        domain = normalize_domain(domain_or_type)
        entities = [
            entity for entity in (parse_entity(raw, domain) for raw in _extract_entity_list(result.value))
            if entity is not None
        ]
        if not entities:
            return Result.fail(FailureKind.NOT_FOUND, "search returned no entities")

        return Result.success(entities)

    async def insights(
        self,
        signal: Dict[str, Any],
        filter: Dict[str, Any]
    ) -> Result[List[TasteEntity]]:
        """Run an insights query and return the related entities."""
        result = await self._request(
            "POST",
            "/v2/insights",
            data={"signal": signal, "filter": filter},
        )
        if not result.ok:
            return Result.fail(result.failure, result.detail)

        domain = normalize_domain(filter.get("type")) if isinstance(filter, dict) else None
        entities = [
            entity for entity in (parse_entity(raw, domain) for raw in _extract_entity_list(result.value))
            if entity is not None
        ]
        return Result.success(entities)

    async def related(
        self,
        entity_id: str,
        domain_or_type: Union[Domain, str],
        limit: Optional[int] = None,
    ) -> Result[List[TasteEntity]]:
        """Entities the graph ranks as related to `entity_id`, most similar first."""
        domain = normalize_domain(domain_or_type)
        graph_type = GRAPH_ENTITY_TYPES[domain.value] if domain else str(domain_or_type)

        filter_body: Dict[str, Any] = {"type": graph_type}
        if limit is not None:
            filter_body["limit"] = limit

        return await self.insights(
            signal={"interests": {"entities": [entity_id]}},
            filter=filter_body,
        )

    async def affinity_cluster(self, entities: str) -> Result[Any]:
        """Raw affinity cluster for a comma-separated list of entity ids."""
        return await self._request("GET", "/affinity-cluster", params={"entities": entities})

    async def cross_domain_affinity(
        self,
        source_entities: str,
        target_type: Union[Domain, str]
    ) -> Result[Any]:
        """Raw affinity from `source_entities` into another domain."""
        domain = normalize_domain(target_type)
        graph_type = GRAPH_ENTITY_TYPES[domain.value] if domain else str(target_type)
        return await self._request(
            "GET",
            "/cross-domain-affinity",
            params={"source_entities": source_entities, "target_type": graph_type},
        )

    async def search_entity(self, query: str, domain: Union[Domain, str]) -> Optional[TasteEntity]:
        """
        Best-matching entity for `query`, or None.

        None covers both "no match" and "graph unavailable"; the failure is
        logged, never raised.
        """
        result = await self.search(query, domain)
        if not result.ok:
            log = logger.info if result.failure in (FailureKind.NOT_FOUND, FailureKind.NOT_CONFIGURED) else logger.warning
            log(f"Qloo search for domain={domain} gave no entity: {result.failure.value} ({result.detail})")
            return None
        return result.value[0]

    async def get_recommendations(self, entity_id: str, domain: Union[Domain, str]) -> List[TasteEntity]:
        """Entities related to `entity_id`; empty list on failure."""
        result = await self.related(entity_id, domain)
        if not result.ok:
            logger.warning(f"Qloo recommendations failed for domain={domain}: {result.failure.value} ({result.detail})")
            return []
        return result.value

    async def get_antitheses(self, entity_id: str, domain: Union[Domain, str]) -> List[TasteEntity]:
        """
        Heuristic antitheses of `entity_id`; empty list on failure.

        See approximate_antitheses for why this is not a true opposite.
        """
        result = await self.related(entity_id, domain, limit=ANTITHESIS_FETCH_LIMIT)
        if not result.ok:
            logger.warning(f"Qloo antitheses failed for domain={domain}: {result.failure.value} ({result.detail})")
            return []
        return approximate_antitheses(result.value)


_taste_graph_client: Optional[TasteGraphClient] = None


def get_taste_graph_client() -> TasteGraphClient:
    """
    Lazy singleton built from settings.

    Used as a FastAPI dependency; tests override it with
    app.dependency_overrides.
    """
    global _taste_graph_client

    if _taste_graph_client is None:
        if not settings.QLOO_API_KEY:
            logger.warning("QLOO_API_KEY not configured. Taste graph calls will use mock/curated fallbacks.")
        _taste_graph_client = TasteGraphClient(
            api_key=settings.QLOO_API_KEY,
            base_url=settings.QLOO_BASE_URL,
            timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
        )

    return _taste_graph_client
