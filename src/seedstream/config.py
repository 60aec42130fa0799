"""
Runtime configuration: discovery limits, presentation limits and API credentials.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

import streamlit as st

logger = logging.getLogger(__name__)

SECRET_KEYS = ("TMDB_API_KEY", "OMDB_API_KEY", "GOOGLE_API_KEY", "GOOGLE_CSE_ID")


@dataclass
class RecommenderConfig:
    max_candidates: int = 50
    similar_limit: int = 20
    genre_search_limit: int = 15
    keyword_search_limit: int = 10
    curated_keyword_limit: int = 12
    cast_crew_limit: int = 5
    web_search_limit: int = 8
    fallback_threshold: int = 10
    fallback_fill_target: int = 20
    presentation_limit: int = 12
    max_workers: int = 6
    embedding_cache_size: int = 512
    enable_embeddings: bool = True
    tmdb_api_key: Optional[str] = None
    omdb_api_key: Optional[str] = None
    google_api_key: Optional[str] = None
    google_cse_id: Optional[str] = None

    @property
    def enable_web_search(self):
        return bool(self.google_api_key and self.google_cse_id)

    @property
    def enable_enrichment(self):
        return bool(self.omdb_api_key)


def _read_secret(name):
    """Look a credential up in the environment, then in Streamlit secrets."""
    value = os.environ.get(name)
    if value:
        return value
    try:
        if name in st.secrets:
            return str(st.secrets[name])
    except Exception as e:
        # No secrets.toml outside a configured Streamlit deployment
        logger.debug(f"Streamlit secrets unavailable for {name}: {e}")
    return None


def _read_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


def load_config(**overrides):
    """
    Build a RecommenderConfig from the environment.

    Args:
        **overrides: Field values that take precedence over the environment

    Returns:
        RecommenderConfig
    """
    values = {name.lower(): _read_secret(name) for name in SECRET_KEYS}
    values["enable_embeddings"] = _read_flag("SEEDSTREAM_ENABLE_EMBEDDINGS", True)
    values.update(overrides)
    return RecommenderConfig(**values)
