"""
Seed-to-Stream - Source Package

This package contains the core functionality for seed-based movie and series recommendations:
- candidate_discovery: Multi-strategy candidate pool building with fallback
- candidate_filter: Rating, vote-count, age and genre-overlap filtering
- movie_scoring: Eight-factor scoring engine and ranking
- feedback_system: Star-rating storage and preference weights
- similarity: Cosine, lexical and tone similarity primitives
- embeddings: Sentence-transformer embeddings with a bounded cache
- tmdb_client: TMDB content directory client
- web_sources: Web-search and OMDb enrichment clients
- recommender: The rank(seed) entry point
- utils / config / models / errors: Constants, configuration, records and exceptions
"""
