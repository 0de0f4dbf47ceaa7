"""
Pydantic schemas for the taste graph proxy endpoints.

TasteEntity is the normalized shape of a Qloo entity; the raw graph payload
differs between search and insights responses, so parsing lives in
zesty.services.taste_graph and only this shape reaches the browser.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from zesty.schemas.preferences import Domain


class TasteEntity(BaseModel):
    """A single taste graph entity (film, artist, book, place, brand)."""
    id: str = Field(..., description="Opaque graph entity id")
    name: str = Field(..., description="Display name")
    type: Optional[str] = Field(None, description="Raw graph type, e.g. 'urn:entity:movie'")
    domain: Optional[Domain] = Field(None, description="Canonical domain, when known")
    image_url: Optional[str] = Field(None, description="Image URL from graph properties")
    tags: List[str] = Field(default_factory=list, description="Genre / tag labels")
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Extra graph properties; {'mock': true} marks synthetic entities"
    )


class SearchResponse(BaseModel):
    """Response for GET /api/qloo/search."""
    results: List[TasteEntity]


class InsightsRequest(BaseModel):
    """
    Request for POST /api/qloo/insights.

    Both fields are required, but they are declared optional so a missing
    field produces the documented 400 instead of a validation 422.
    """
    signal: Optional[Dict[str, Any]] = Field(
        None,
        examples=[{"interests": {"entities": ["B8E5D4D6-1234"]}}]
    )
    filter: Optional[Dict[str, Any]] = Field(
        None,
        examples=[{"type": "urn:entity:movie"}]
    )


class RelatedResponse(BaseModel):
    """Response for insights and recommendations endpoints."""
    related: List[TasteEntity]


class AntithesesRequest(BaseModel):
    """Request for POST /api/qloo/antitheses."""
    entity_id: Optional[str] = Field(None, examples=["B8E5D4D6-1234"])
    type: Optional[str] = Field(None, examples=["movie", "urn:entity:movie"])


class AntithesesResponse(BaseModel):
    """
    Response for POST /api/qloo/antitheses.

    `heuristic` is always true: the graph has no native opposite relation,
    so these are the least similar tail of a related-entities list.
    """
    antitheses: List[TasteEntity]
    heuristic: bool = True
