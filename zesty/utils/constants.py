"""
Shared constants for the Zesty backend.

Graph type URNs follow the Qloo entity taxonomy. Keys are canonical
Domain values (see zesty.schemas.preferences.Domain).
"""

# Domain -> Qloo entity type used for search and insights filters
GRAPH_ENTITY_TYPES = {
    'movie': 'urn:entity:movie',
    'music': 'urn:entity:artist',
    'book': 'urn:entity:book',
    'food': 'urn:entity:place',
    'fashion': 'urn:entity:brand',
}

# Domains generated when a request does not name any
DEFAULT_CARD_DOMAINS = ('movie', 'music', 'book', 'food')

# Short "what you gain" label shown on each card
GROWTH_BENEFITS = {
    'movie': 'Cinematic appreciation & cultural literacy',
    'music': 'Musical diversity & auditory expansion',
    'book': 'Literary exploration & intellectual growth',
    'food': 'Culinary adventure & cultural immersion',
    'fashion': 'Aesthetic range & self-expression',
}

# Namespace for challenges kept on the local device
LOCAL_CHALLENGES_NAMESPACE = 'zesty_challenges'
