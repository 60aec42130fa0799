"""
Seed-to-recommendations entry point.
"""

import logging
from dataclasses import replace

from seedstream.candidate_discovery import CandidateDiscovery
from seedstream.config import RecommenderConfig
from seedstream.errors import SeedValidationError
from seedstream.feedback_system import aggregate_feedback, build_feedback_record, FeedbackWeights
from seedstream.models import MEDIA_TYPES
from seedstream.movie_scoring import ScoringEngine, rank_recommendations

logger = logging.getLogger(__name__)


def validate_seed(seed):
    """Fail fast on a seed that discovery cannot start from."""
    if seed is None:
        raise SeedValidationError("item", "no seed item given")
    if getattr(seed, 'id', None) is None:
        raise SeedValidationError("id", "seed has no identifier")
    if getattr(seed, 'media_type', None) not in MEDIA_TYPES:
        raise SeedValidationError(
            "media_type", f"expected one of {', '.join(MEDIA_TYPES)}, got {getattr(seed, 'media_type', None)!r}"
        )


class Recommender:
    """
    Ranks titles similar to a seed item.

    Args:
        directory: Content directory client
        embedder: Optional embedding service
        web_search: Optional web-search client
        enrichment: Optional metadata-enrichment client
        feedback_store: Optional store with `read_all()` / `append_or_replace(record)`
        config: RecommenderConfig
    """

    def __init__(self, directory, embedder=None, web_search=None, enrichment=None,
                 feedback_store=None, config=None):
        self.config = config or RecommenderConfig()
        self.directory = directory
        self.feedback_store = feedback_store
        self.discovery = CandidateDiscovery(directory, web_search, enrichment, self.config)
        self.engine = ScoringEngine(directory, embedder, max_workers=self.config.max_workers)

    def load_genre_vocabulary(self):
        """Movie and series genres pooled together; a failing list is skipped."""
        vocabulary = []
        for media_type in MEDIA_TYPES:
            try:
                vocabulary.extend(self.directory.get_genre_vocabulary(media_type))
            except Exception as e:
                logger.warning(f"Could not load {media_type} genres: {e}")
        return vocabulary

    def load_feedback_weights(self):
        if self.feedback_store is None:
            return FeedbackWeights()
        try:
            return aggregate_feedback(self.feedback_store.read_all())
        except Exception as e:
            logger.warning(f"Could not read feedback, scoring without personalization: {e}")
            return FeedbackWeights()

    def enrich_seed(self, seed):
        """Fill in a missing tagline or genre list from the directory's details."""
        if seed.tagline and seed.genre_ids:
            return seed
        try:
            details = self.directory.get_details(seed.id, seed.media_type)
        except Exception as e:
            logger.warning(f"Could not fetch details for seed '{seed.title}': {e}")
            return seed
        if details is None:
            return seed
        return replace(
            seed,
            tagline=seed.tagline or details.tagline,
            genre_ids=seed.genre_ids or list(details.genre_ids),
        )

    def rank(self, seed):
        """
        Recommend titles similar to the seed.

        Args:
            seed: Seed Item

        Returns:
            List of ScoredRecommendation, highest score first, at most
            `config.presentation_limit` long; empty when nothing was found

        Raises:
            SeedValidationError: If the seed lacks an id or a valid media type
        """
        validate_seed(seed)
        seed = self.enrich_seed(seed)

        vocabulary = self.load_genre_vocabulary()
        weights = self.load_feedback_weights()

        candidates = self.discovery.discover(seed, vocabulary)
        if not candidates:
            logger.info(f"No candidates found for '{seed.title}'")
            return []

        scored = self.engine.score(seed, candidates, vocabulary, weights)
        return rank_recommendations(scored, self.config.presentation_limit)

    def record_rating(self, item, stars):
        """
        Store a star rating for an item, capturing its genres and people now.

        Returns:
            The stored FeedbackRecord
        """
        credits = None
        if not item.is_synthetic:
            try:
                credits = self.directory.get_credits(item.id, item.media_type)
            except Exception as e:
                logger.warning(f"Could not fetch credits for rated item {item.id}: {e}")

        record = build_feedback_record(item, stars, credits)
        if self.feedback_store is not None:
            self.feedback_store.append_or_replace(record)
        return record
