"""
Taste graph proxy endpoints.

Keeps the Qloo API key on the server; the browser talks only to these
routes.

Endpoints:
- GET  /api/qloo/search: entity search (mock entity when the graph is unavailable)
- POST /api/qloo/insights: raw insights query
- GET  /api/qloo/recommendations: entities related to an entity (or to a search match)
- POST /api/qloo/antitheses: heuristic "opposite taste" entities
- GET  /api/qloo/affinity-cluster: raw affinity cluster for a set of entities
- GET  /api/qloo/cross-domain-affinity: raw affinity into another domain
"""

from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from zesty.schemas.taste import (
    AntithesesRequest,
    AntithesesResponse,
    InsightsRequest,
    RelatedResponse,
    SearchResponse,
)
from zesty.services.taste_graph import (
    ANTITHESIS_FETCH_LIMIT,
    TasteGraphClient,
    approximate_antitheses,
    build_mock_entity,
    get_taste_graph_client,
)
from zesty.utils.logging import get_logger
from zesty.utils.results import FailureKind

logger = get_logger(__name__)

router = APIRouter(prefix="/api/qloo", tags=["taste-graph"])


def _missing(details: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "missing_parameters", "details": details}
    )


def _upstream_error(details: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": "upstream_error", "details": details}
    )


@router.get(
    "/search",
    response_model=SearchResponse,
    summary="Search taste graph entities",
    description="""
    Searches the taste graph for entities matching `query`.

    `type` (or `types`) accepts a domain (movie, music, ...) or a graph type.
    When the graph key is missing or the graph fails, a single mock entity
    flagged with `metadata.mock = true` is returned instead of an error.
    """
)
async def search_entities(
    client: Annotated[TasteGraphClient, Depends(get_taste_graph_client)],
    query: Optional[str] = Query(None, max_length=200),
    type: Optional[str] = Query(None),
    types: Optional[str] = Query(None),
) -> SearchResponse:
    entity_type = type or types
    if not query or not entity_type:
        raise _missing("Missing required parameters: query and types")

    logger.info(f"GET /api/qloo/search type={entity_type}")

    result = await client.search(query, entity_type)
    if result.ok:
        return SearchResponse(results=result.value)

    if result.failure == FailureKind.NOT_FOUND:
        return SearchResponse(results=[])

    logger.warning(f"Search fell back to mock entity: {result.failure.value} ({result.detail})")
    reason = None if result.failure == FailureKind.NOT_CONFIGURED else "Qloo API unavailable"
    return SearchResponse(results=[build_mock_entity(query, entity_type, reason)])


@router.post(
    "/insights",
    response_model=RelatedResponse,
    summary="Run a taste graph insights query",
)
async def get_insights(
    request: InsightsRequest,
    client: Annotated[TasteGraphClient, Depends(get_taste_graph_client)],
) -> RelatedResponse:
    if not request.signal or not request.filter:
        raise _missing("Missing required parameters: signal and filter")

    result = await client.insights(request.signal, request.filter)
    if not result.ok:
        logger.error(f"Insights failed: {result.failure.value} ({result.detail})")
        raise _upstream_error("Failed to fetch insights")

    return RelatedResponse(related=result.value)


@router.get(
    "/recommendations",
    response_model=RelatedResponse,
    summary="Entities related to an entity",
    description="""
    Related entities for `entity_id`, or for the best search match of
    `query` when no id is given. `type` is required.
    """
)
async def get_recommendations(
    client: Annotated[TasteGraphClient, Depends(get_taste_graph_client)],
    type: Optional[str] = Query(None),
    entity_id: Optional[str] = Query(None),
    query: Optional[str] = Query(None, max_length=200),
) -> RelatedResponse:
    if not type or not (entity_id or query):
        raise _missing("Missing required parameters: type and entity_id or query")

    if not entity_id:
        search = await client.search(query, type)
        if not search.ok:
            if search.failure == FailureKind.NOT_FOUND:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail={"error": "not_found", "details": "Entity not found"}
                )
            logger.error(f"Recommendation search failed: {search.failure.value} ({search.detail})")
            raise _upstream_error("Failed to get recommendations")
        entity_id = search.value[0].id

    result = await client.related(entity_id, type)
    if not result.ok:
        logger.error(f"Recommendations failed: {result.failure.value} ({result.detail})")
        raise _upstream_error("Failed to get recommendations")

    return RelatedResponse(related=result.value)


@router.post(
    "/antitheses",
    response_model=AntithesesResponse,
    summary="Heuristic opposite-taste entities",
    description="""
    Entities far from `entity_id` in the taste graph.

    The graph has no opposite relation, so this is the least similar tail of
    a related-entities list; the response always carries `heuristic: true`.
    """
)
async def get_antitheses(
    request: AntithesesRequest,
    client: Annotated[TasteGraphClient, Depends(get_taste_graph_client)],
) -> AntithesesResponse:
    if not request.entity_id or not request.type:
        raise _missing("Missing required parameters: entity_id and type")

    result = await client.related(request.entity_id, request.type, limit=ANTITHESIS_FETCH_LIMIT)
    if not result.ok:
        logger.error(f"Antitheses failed: {result.failure.value} ({result.detail})")
        raise _upstream_error("Failed to fetch antitheses")

    return AntithesesResponse(antitheses=approximate_antitheses(result.value))


@router.get(
    "/affinity-cluster",
    summary="Affinity cluster for a set of entities",
    description="""
    Passes `entities` (comma-separated graph ids) to the graph and returns
    its response body unchanged.
    """
)
async def get_affinity_cluster(
    client: Annotated[TasteGraphClient, Depends(get_taste_graph_client)],
    entities: Optional[str] = Query(None),
) -> Any:
    if not entities:
        raise _missing("Missing required parameter: entities")

    result = await client.affinity_cluster(entities)
    if not result.ok:
        logger.error(f"Affinity cluster failed: {result.failure.value} ({result.detail})")
        raise _upstream_error("Failed to get affinity cluster")

    return result.value


@router.get(
    "/cross-domain-affinity",
    summary="Affinity from entities into another domain",
    description="""
    `target_type` accepts a domain (movie, music, ...) or a graph type. The
    graph's response body is returned unchanged.
    """
)
async def get_cross_domain_affinity(
    client: Annotated[TasteGraphClient, Depends(get_taste_graph_client)],
    source_entities: Optional[str] = Query(None),
    target_type: Optional[str] = Query(None),
) -> Any:
    if not source_entities or not target_type:
        raise _missing("Missing required parameters: source_entities and target_type")

    result = await client.cross_domain_affinity(source_entities, target_type)
    if not result.ok:
        logger.error(f"Cross-domain affinity failed: {result.failure.value} ({result.detail})")
        raise _upstream_error("Failed to get cross-domain affinity")

    return result.value
