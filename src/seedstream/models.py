"""
Data records shared by discovery, scoring and feedback.
"""

from dataclasses import dataclass, field, asdict
from typing import List, Optional, Dict, Any

MOVIE = "movie"
SERIES = "series"
MEDIA_TYPES = (MOVIE, SERIES)


@dataclass
class Item:
    """A movie or series, either the seed or a candidate."""
    id: int
    media_type: str
    title: str = ""
    synopsis: str = ""
    release_date: Optional[str] = None
    rating: float = 0.0
    vote_count: int = 0
    genre_ids: List[int] = field(default_factory=list)
    tagline: Optional[str] = None
    poster_path: Optional[str] = None
    is_fallback: bool = False
    is_external_sourced: bool = False
    source_snippet: Optional[str] = None

    @property
    def key(self):
        return (self.id, self.media_type)

    @property
    def is_synthetic(self):
        """True for items minted from web/enrichment results only."""
        return self.id is not None and self.id < 0


@dataclass
class Genre:
    id: int
    name: str


@dataclass
class Credit:
    name: str
    role: str  # cast | director | writer | other
    order: int = 0
    job: str = ""


@dataclass
class Credits:
    cast: List[Credit] = field(default_factory=list)
    crew: List[Credit] = field(default_factory=list)


@dataclass
class Keyword:
    id: int
    name: str


@dataclass
class WebResult:
    """A single web-search hit."""
    title: str
    snippet: str = ""
    link: str = ""


@dataclass
class EnrichmentRecord:
    """Metadata returned by the enrichment service for a title."""
    title: str
    genres: str = ""
    rating: float = 0.0
    vote_count: int = 0
    plot: str = ""
    poster: Optional[str] = None
    type: str = MOVIE
    year: Optional[str] = None


@dataclass
class FeedbackRecord:
    """A star rating captured together with the item's genres and people."""
    item_id: int
    media_type: str
    rating: float
    timestamp: float
    genre_ids: List[int] = field(default_factory=list)
    cast: List[str] = field(default_factory=list)
    crew: List[str] = field(default_factory=list)

    @property
    def key(self):
        return (self.item_id, self.media_type)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ScoreBreakdown:
    genre_score: int = 0
    rating_score: int = 0
    content_score: int = 0
    cast_crew_score: int = 0
    popularity_score: int = 0
    tone_score: int = 0
    feedback_score: int = 0
    keyword_score: int = 0
    justification: str = ""


@dataclass
class ScoredRecommendation:
    item: Item
    total_score: int
    breakdown: ScoreBreakdown

    @property
    def key(self):
        return self.item.key

    @property
    def justification(self):
        return self.breakdown.justification
