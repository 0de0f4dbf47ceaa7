"""
Curated discomfort content used when the taste graph has nothing to offer.

Each domain lists hand-picked entries, ordered so that the first four make a
reasonable default set. Difficulty is editorial (1 mild .. 5 very
uncomfortable), not derived from any graph signal.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Tuple

from zesty.schemas.preferences import Domain

# Number of curated entries used when a domain has no graph candidates
CURATED_DEFAULT_COUNT = 4


@dataclass(frozen=True)
class CuratedEntry:
    name: str
    genre: str
    difficulty: int

    @property
    def slug(self) -> str:
        """URL-safe key used in card ids (e.g. 'stalker-1979')."""
        return re.sub(r"[^a-z0-9]+", "-", self.name.lower()).strip("-")


CURATED_CONTENT: Dict[Domain, Tuple[CuratedEntry, ...]] = {
    Domain.MOVIE: (
        CuratedEntry("Stalker (1979)", "Soviet Sci-Fi", 5),
        CuratedEntry("The Tree of Life", "Experimental Drama", 4),
        CuratedEntry("Persona", "Psychological Art Film", 5),
        CuratedEntry("Mulholland Drive", "Surreal Mystery", 4),
        CuratedEntry("Jeanne Dielman", "Minimalist Drama", 5),
        CuratedEntry("Satantango", "Long-form Art Cinema", 5),
    ),
    Domain.MUSIC: (
        CuratedEntry("Mongolian Throat Singing", "Traditional World", 3),
        CuratedEntry("Free Jazz", "Experimental Jazz", 4),
        CuratedEntry("Drone Metal", "Extreme Metal", 4),
        CuratedEntry("Gamelan Orchestra", "Indonesian Traditional", 3),
        CuratedEntry("Noise Music", "Experimental Electronic", 5),
        CuratedEntry("Microtonal Compositions", "Contemporary Classical", 5),
    ),
    Domain.BOOK: (
        CuratedEntry("Finnegans Wake", "Experimental Literature", 5),
        CuratedEntry("Being and Time", "Philosophy", 5),
        CuratedEntry("Gravity's Rainbow", "Postmodern Fiction", 4),
        CuratedEntry("The Phenomenology of Spirit", "German Idealism", 5),
        CuratedEntry("Ulysses", "Modernist Literature", 4),
        CuratedEntry("The Book of Disquiet", "Fragmentary Prose", 4),
    ),
    Domain.FOOD: (
        CuratedEntry("Fermented Shark (Hákarl)", "Icelandic Delicacy", 5),
        CuratedEntry("Durian Fruit", "Southeast Asian Fruit", 4),
        CuratedEntry("Century Eggs", "Chinese Preserved Food", 4),
        CuratedEntry("Casu Marzu Cheese", "Italian Aged Cheese", 5),
        CuratedEntry("Balut", "Filipino Street Food", 5),
        CuratedEntry("Surströmming", "Swedish Fermented Fish", 5),
    ),
    Domain.FASHION: (
        CuratedEntry("Comme des Garçons", "Avant-garde Fashion", 4),
        CuratedEntry("Japanese Boro Textiles", "Vintage Clothing", 3),
        CuratedEntry("Rick Owens", "Gender-neutral Clothing", 4),
        CuratedEntry("Visible Mending", "Sustainable Fashion", 2),
        CuratedEntry("Jil Sander", "Minimalist Style", 2),
        CuratedEntry("Harajuku Decora", "Street Style", 5),
    ),
}


def curated_for(domain: Domain) -> List[CuratedEntry]:
    return list(CURATED_CONTENT.get(domain, ()))


def default_curated(domain: Domain) -> List[CuratedEntry]:
    """The first CURATED_DEFAULT_COUNT entries for a domain."""
    return curated_for(domain)[:CURATED_DEFAULT_COUNT]
