"""
Recommendation scoring and ranking.

Every candidate gets eight additive sub-scores (genre, rating, content, cast/crew,
popularity, tone, feedback, keywords) that combine into a total between 0 and
120, plus a short justification built from the notable sub-scores.
"""

import logging
import concurrent.futures

from seedstream.embeddings import semantic_similarity
from seedstream.feedback_system import feedback_boost
from seedstream.models import ScoreBreakdown, ScoredRecommendation
from seedstream.similarity import (
    cosine_similarity, lexical_item_similarity, classify_tone, tone_compatibility, log_votes
)
from seedstream.utils import (
    GENRE_RARITY_WEIGHTS, DEFAULT_RARITY_WEIGHT, SCORE_CEILING, FALLBACK_PENALTY,
    EXTERNAL_SOURCE_BOOST, SNIPPET_PREVIEW_LENGTH, clamp
)

logger = logging.getLogger(__name__)

SCORING_CAST_LIMIT = 10
SCORING_CREW_ROLES = {"director", "writer"}


def compute_genre_score(seed_genres, candidate_genres):
    """
    Genre overlap score, 0-150.

    Returns:
        Tuple of (score, list of shared genre ids in candidate order)
    """
    seed_set = set(seed_genres or [])
    common = []
    for genre_id in candidate_genres or []:
        if genre_id in seed_set and genre_id not in common:
            common.append(genre_id)

    if not common:
        return 0.0, []

    avg_weight = sum(GENRE_RARITY_WEIGHTS.get(g, DEFAULT_RARITY_WEIGHT) for g in common) / len(common)

    base_score = (len(common) / max(len(seed_set), 1)) * 80
    rarity_bonus = min(30, avg_weight * 15)
    multi_genre_bonus = 15 if len(common) > 1 else 0
    diversity_bonus = min(15, len(common) * 3)
    perfect_bonus = 10 if len(common) == len(seed_set) else 0

    score = base_score + rarity_bonus + multi_genre_bonus + diversity_bonus + perfect_bonus
    return clamp(score, 0, 150), common


def compute_rating_score(rating, vote_count):
    """Rating plus vote-count reliability, 0-20."""
    normalized = clamp(((rating or 0) - 1) / 9, 0, 1)
    reliability_bonus = min(5, log_votes(vote_count) * 1.5)
    return normalized * 15 + reliability_bonus


def compute_popularity_score(vote_count):
    """Popularity from vote count, 0-10."""
    return min(1, log_votes(vote_count) / 5) * 10


def key_people(credits):
    """Names of the top-billed cast plus directors and writers."""
    cast = [c.name for c in credits.cast[:SCORING_CAST_LIMIT]]
    crew = [c.name for c in credits.crew if c.role in SCORING_CREW_ROLES]
    return {name for name in cast + crew if name}


def _credited_as(credits, name, role):
    return any(c.name == name and c.role == role for c in credits.crew)


def compute_cast_crew_score(seed_credits, candidate_credits):
    """
    Shared-people score, 0-40.

    Shared directors count 15, shared writers 10, anyone else 5.
    """
    if seed_credits is None or candidate_credits is None:
        return 0

    common = key_people(seed_credits) & key_people(candidate_credits)
    score = 0
    for name in sorted(common):
        if _credited_as(seed_credits, name, "director") and _credited_as(candidate_credits, name, "director"):
            score += 15
        elif _credited_as(seed_credits, name, "writer") and _credited_as(candidate_credits, name, "writer"):
            score += 10
        else:
            score += 5
    return min(40, score)


def compute_keyword_score(seed_keywords, candidate_keywords):
    """
    Curated-keyword overlap score, 0-45.

    Returns:
        Tuple of (score, list of shared keyword names as the seed spells them)
    """
    if not seed_keywords or not candidate_keywords:
        return 0, []

    seed_names = {}
    for keyword in seed_keywords:
        seed_names.setdefault(keyword.name.lower(), keyword.name)
    candidate_names = {keyword.name.lower() for keyword in candidate_keywords}

    common = [name for name in seed_names if name in candidate_names]
    if not common:
        return 0, []

    union = set(seed_names) | candidate_names
    overlap_ratio = len(common) / len(union)

    base_score = overlap_ratio * 25
    multi_bonus = min(8, len(common) * 1.5)
    rare_bonus = min(8, len(common) * 1)
    perfect_bonus = 4 if len(common) == min(len(seed_names), len(candidate_names)) else 0

    score = min(45, base_score + multi_bonus + rare_bonus + perfect_bonus)
    return score, [seed_names[name] for name in common]


def keyword_overlap_bonus(seed_keywords, candidate_keywords):
    """Up to 0.15 extra content similarity for shared curated keywords."""
    if not seed_keywords or not candidate_keywords:
        return 0.0
    seed_names = {k.name.lower() for k in seed_keywords}
    candidate_names = {k.name.lower() for k in candidate_keywords}
    union = seed_names | candidate_names
    if not union:
        return 0.0
    return min(0.15, len(seed_names & candidate_names) / len(union) * 0.15)


def seed_text(seed):
    if seed.tagline:
        return f"{seed.synopsis} {seed.tagline}"
    return seed.synopsis


def compute_content_similarity(seed, candidate, embedder=None, seed_keywords=None, candidate_keywords=None):
    """
    Semantic similarity of the seed's synopsis+tagline to the candidate synopsis, 0-1.

    Uses embeddings when both texts embed; otherwise the lexical measure with
    rare-word and tagline bonuses. Tagline and curated-keyword bonuses are added
    on top.
    """
    seed_vector = embedder.embed(seed_text(seed)) if embedder is not None else []
    candidate_vector = embedder.embed(candidate.synopsis) if embedder is not None else []

    if len(seed_vector) and len(candidate_vector):
        similarity = cosine_similarity(seed_vector, candidate_vector)
        if seed.tagline and candidate.tagline:
            tagline_similarity = semantic_similarity(seed.tagline, candidate.tagline, embedder)
            similarity += clamp(tagline_similarity * 0.1, 0, 0.1)
    else:
        similarity = lexical_item_similarity(seed_text(seed), candidate.synopsis, seed.tagline, candidate.tagline)

    similarity += keyword_overlap_bonus(seed_keywords, candidate_keywords)
    return clamp(similarity, 0, 1)


def compute_tone_score(seed, candidate):
    seed_tone = classify_tone(f"{seed.synopsis} {seed.tagline or ''}")
    candidate_tone = classify_tone(candidate.synopsis)
    return tone_compatibility(seed_tone, candidate_tone)


def combine_total(sub_scores, is_fallback=False, is_external_sourced=False):
    """
    Combine sub-scores into the 0-120 total.

    External-sourced items get a flat boost before the ceiling; fallback items
    lose FALLBACK_PENALTY points from the capped total, never going below zero.
    """
    total = min(SCORE_CEILING, sum(sub_scores))
    if is_external_sourced:
        total = min(SCORE_CEILING, total + EXTERNAL_SOURCE_BOOST)
    if is_fallback:
        total = max(0, total - FALLBACK_PENALTY)
    return int(clamp(round(total), 0, SCORE_CEILING))


def snippet_preview(snippet):
    if len(snippet) > SNIPPET_PREVIEW_LENGTH:
        return snippet[:SNIPPET_PREVIEW_LENGTH] + "..."
    return snippet


class ScoringEngine:
    """
    Scores candidates against a seed.

    Args:
        directory: Content directory client, used for credits and keywords
        embedder: Embedding service with `embed(text)`, or None for lexical only
        max_workers: Candidates scored concurrently
    """

    def __init__(self, directory, embedder=None, max_workers=5):
        self.directory = directory
        self.embedder = embedder
        self.max_workers = max_workers

    def _fetch(self, label, func, item, default):
        if item.is_synthetic:
            return default
        try:
            return func(item.id, item.media_type)
        except Exception as e:
            logger.warning(f"Could not fetch {label} for {item.media_type} {item.id}: {e}")
            return default

    def _sub_score(self, name, item, func, *args):
        try:
            return func(*args)
        except Exception as e:
            logger.warning(f"Sub-score '{name}' failed for {item.media_type} {item.id}: {e}")
            return 0

    def score(self, seed, candidates, genre_vocabulary=None, feedback_weights=None):
        """
        Score every candidate.

        Args:
            seed: Seed Item
            candidates: List of Item
            genre_vocabulary: List of Genre, for readable justifications
            feedback_weights: FeedbackWeights from past ratings

        Returns:
            List of ScoredRecommendation in input order
        """
        genre_names = {g.id: g.name for g in genre_vocabulary or []}
        seed_credits = self._fetch("credits", self.directory.get_credits, seed, None)
        seed_keywords = self._fetch("keywords", self.directory.get_keywords, seed, [])

        def score_one(candidate):
            return self.score_item(seed, candidate, genre_names, feedback_weights, seed_credits, seed_keywords)

        if not candidates:
            return []
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(score_one, candidates))

    def score_item(self, seed, item, genre_names, feedback_weights, seed_credits, seed_keywords):
        try:
            return self._score_item(seed, item, genre_names, feedback_weights, seed_credits, seed_keywords)
        except Exception as e:
            logger.warning(f"Error scoring {item.media_type} {item.id} '{item.title}': {e}")
            fallback_score = int(clamp(round(((item.rating or 0) / 10) * 50), 0, SCORE_CEILING))
            return ScoredRecommendation(
                item=item,
                total_score=fallback_score,
                breakdown=ScoreBreakdown(justification="Basic similarity score")
            )

    def _score_item(self, seed, item, genre_names, feedback_weights, seed_credits, seed_keywords):
        parts = []

        genre_score, common_genres = self._sub_score(
            "genre", item, compute_genre_score, seed.genre_ids, item.genre_ids
        ) or (0, [])

        if item.is_fallback:
            parts.append("Fallback recommendation (limited genre match)")
        if item.is_external_sourced and item.source_snippet:
            parts.append("Curated web recommendation")

        named = [genre_names[g] for g in common_genres if g in genre_names]
        if named:
            parts.append(f"Shares {', '.join(named[:3])} themes")

        rating_score = self._sub_score("rating", item, compute_rating_score, item.rating, item.vote_count)
        if (item.rating or 0) >= 7:
            parts.append(f"High rating ({item.rating:.1f})")
        if (item.vote_count or 0) > 1000:
            parts.append("Well-rated by many viewers")

        candidate_keywords = self._fetch("keywords", self.directory.get_keywords, item, [])
        content_score = self._sub_score(
            "content", item, compute_content_similarity,
            seed, item, self.embedder, seed_keywords, candidate_keywords
        ) * 25
        if content_score > 12:
            parts.append("Similar plot elements and themes")

        candidate_credits = self._fetch("credits", self.directory.get_credits, item, None)
        cast_crew_score = self._sub_score(
            "cast_crew", item, compute_cast_crew_score, seed_credits, candidate_credits
        )
        if cast_crew_score > 15:
            parts.append("Shares key cast/crew members")
        elif cast_crew_score > 8:
            parts.append("Some cast/crew overlap")

        popularity_score = self._sub_score("popularity", item, compute_popularity_score, item.vote_count)
        if (item.vote_count or 0) > 5000:
            parts.append("Popular and well-known")

        tone_score = self._sub_score("tone", item, compute_tone_score, seed, item)
        if tone_score > 18:
            parts.append("Similar tone and atmosphere")

        feedback_score = self._sub_score("feedback", item, feedback_boost, item, feedback_weights)
        if feedback_score > 5:
            parts.append("Matches your preferences")

        keyword_score, common_keywords = self._sub_score(
            "keyword", item, compute_keyword_score, seed_keywords, candidate_keywords
        ) or (0, [])
        if keyword_score > 15:
            parts.append(f"Shares thematic keywords: {', '.join(common_keywords)}")

        sub_scores = [genre_score, rating_score, content_score, cast_crew_score,
                      popularity_score, tone_score, feedback_score, keyword_score]
        total = combine_total(sub_scores, item.is_fallback, item.is_external_sourced)

        justification = ", ".join(parts)
        if item.is_external_sourced and item.source_snippet:
            justification += f" | Web source: {snippet_preview(item.source_snippet)}"

        return ScoredRecommendation(
            item=item,
            total_score=total,
            breakdown=ScoreBreakdown(
                genre_score=int(round(genre_score)),
                rating_score=int(round(rating_score)),
                content_score=int(round(content_score)),
                cast_crew_score=int(round(cast_crew_score)),
                popularity_score=int(round(popularity_score)),
                tone_score=int(round(tone_score)),
                feedback_score=int(round(feedback_score)),
                keyword_score=int(round(keyword_score)),
                justification=justification or "Similar content style",
            )
        )


def rank_recommendations(scored, limit=None):
    """Sort by total score, highest first; equal scores keep input order."""
    ranked = sorted(scored, key=lambda rec: -rec.total_score)
    return ranked[:limit] if limit is not None else ranked
