"""
Utility functions and constants for the recommendation engine.
"""

import zlib
from datetime import datetime

import streamlit as st
from sentence_transformers import SentenceTransformer

EMBEDDING_MODEL_NAME = "all-MiniLM-L6-v2"

# Total score ceiling and provenance adjustments
SCORE_CEILING = 120
FALLBACK_PENALTY = 40
EXTERNAL_SOURCE_BOOST = 5

# Higher weight for genres that are rarely shared by chance
GENRE_RARITY_WEIGHTS = {
    10770: 2.0,  # TV Movie
    10752: 1.8,  # War
    99: 1.6,     # Documentary
    10751: 1.5,  # Family
    16: 1.4,     # Animation
    37: 1.3,     # Western
    10402: 1.2,  # Music
    10749: 1.1,  # Romance
    28: 1.0,     # Action
    12: 1.0,     # Adventure
    35: 1.0,     # Comedy
    80: 1.0,     # Crime
    18: 1.0,     # Drama
    27: 1.0,     # Horror
    9648: 1.0,   # Mystery
    878: 1.0,    # Science Fiction
    53: 1.0,     # Thriller
}
DEFAULT_RARITY_WEIGHT = 1.0

# OMDb genre label -> directory genre names it may correspond to
OMDB_GENRE_MAP = {
    "Action": ["Action", "Adventure", "Thriller"],
    "Adventure": ["Adventure", "Action", "Fantasy"],
    "Animation": ["Animation", "Family"],
    "Biography": ["Drama", "History"],
    "Comedy": ["Comedy", "Romance"],
    "Crime": ["Crime", "Drama", "Thriller"],
    "Documentary": ["Documentary"],
    "Drama": ["Drama", "Romance"],
    "Family": ["Family", "Adventure", "Comedy"],
    "Fantasy": ["Fantasy", "Adventure", "Drama"],
    "Film-Noir": ["Drama", "Thriller"],
    "Game-Show": ["Reality"],
    "History": ["History", "Drama", "War"],
    "Horror": ["Horror", "Thriller"],
    "Music": ["Music", "Drama"],
    "Musical": ["Music", "Romance"],
    "Mystery": ["Mystery", "Thriller", "Drama"],
    "News": ["News"],
    "Reality-TV": ["Reality"],
    "Romance": ["Romance", "Drama", "Comedy"],
    "Sci-Fi": ["Science Fiction", "Action", "Adventure"],
    "Sport": ["Sport"],
    "Talk-Show": ["Talk-Show"],
    "Thriller": ["Thriller", "Action", "Drama"],
    "War": ["War", "Action", "Drama"],
    "Western": ["Western", "Action", "Drama"],
}

# Filter thresholds applied to each discovery strategy
DISCOVERY_FILTERS = {
    "similar": {"min_rating": 6.0, "min_vote_count": 100, "max_age_years": 50, "require_genre_overlap": True},
    "genre": {"min_rating": 6.5, "min_vote_count": 200, "max_age_years": 40, "require_genre_overlap": True},
    "lexical": {"min_rating": 6.0, "min_vote_count": 150, "max_age_years": 45, "require_genre_overlap": True},
    "curated_keyword": {"min_rating": 6.5, "min_vote_count": 200, "max_age_years": 40, "require_genre_overlap": True},
    "cast_crew": {"min_rating": 6.0, "min_vote_count": 100, "max_age_years": 50, "require_genre_overlap": False},
    "web": {"min_rating": 5.5, "min_vote_count": 50, "max_age_years": 60, "require_genre_overlap": False},
}

# Fan-out caps per strategy
MAX_SEED_GENRES = 2
MAX_SEARCH_TERMS = 3
MAX_CURATED_KEYWORDS = 5
MAX_TOP_CAST = 5
MAX_KEY_CREW = 3
MAX_PEOPLE = 3
DISCOVERY_CREW_JOBS = {"Director", "Writer", "Creator"}

# Extraction of lexical search terms from title + synopsis
SEARCH_TERM_STOP_WORDS = {
    "the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
    "a", "an", "is", "are", "was", "were", "be", "been", "being", "have", "has",
    "had", "do", "does", "did", "will", "would", "could", "should", "may", "might",
    "this", "that", "these", "those", "i", "you", "he", "she", "it", "we", "they",
    "me", "him", "her", "us", "them", "my", "your", "his", "its", "our", "their",
}

# Words ignored by lexical similarity
SIMILARITY_STOP_WORDS = {"the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"}

# Checked in this order; first match wins
TONE_KEYWORDS = [
    ("serious", ["dark", "gritty", "serious", "dramatic", "intense", "violent", "crime", "murder",
                 "corruption", "politics", "social", "realistic", "dystopia"]),
    ("light", ["funny", "comedy", "light", "cheerful", "family", "feel-good", "romantic",
               "adventure", "fantasy", "magical"]),
    ("action", ["action", "thriller", "suspense", "adventure", "war", "fighting", "chase", "explosion"]),
    ("mystery", ["mystery", "suspense", "thriller", "investigation", "detective", "clue", "puzzle"]),
]
NEUTRAL_TONE = "neutral"

# Web-search constraints and title boilerplate
TRUSTED_REVIEW_SITES = ("imdb.com", "rottentomatoes.com")
WEB_TITLE_SUFFIXES = [" - IMDb", " - Rotten Tomatoes", " - Movie", " - Film", " - TV Show", " - Series"]

SNIPPET_PREVIEW_LENGTH = 100


@st.cache_resource
def get_embedding_model():
    """Get the sentence transformer model for embeddings."""
    return SentenceTransformer(EMBEDDING_MODEL_NAME, device='cpu')


def get_field(obj, name, default=None):
    """Read a field from either a dict or an attribute-style API object."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        value = obj.get(name, default)
    else:
        value = getattr(obj, name, default)
    return default if value is None else value


def parse_release_year(release_date):
    """Return the year of a YYYY[-MM-DD] date string, or None if unparseable."""
    if not release_date:
        return None
    try:
        return int(str(release_date)[:4])
    except (ValueError, TypeError):
        return None


def current_year():
    return datetime.now().year


def clamp(value, low, high):
    return max(low, min(high, value))


def synthetic_item_id(title):
    """Stable negative id for an item that only exists outside the directory."""
    return -((zlib.crc32(title.lower().strip().encode("utf-8")) & 0x7FFFFFFF) + 1)
