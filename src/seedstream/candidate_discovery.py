"""
Candidate pool building from several independent discovery strategies.

Each strategy runs as its own task against the external sources. A failing
strategy contributes nothing; the merge happens only after every task has
reported, in fixed priority order, so deduplication is deterministic.
"""

import logging
import concurrent.futures
from dataclasses import replace

from seedstream.candidate_filter import filter_candidates, has_genre_overlap
from seedstream.config import RecommenderConfig
from seedstream.models import Item
from seedstream.similarity import extract_search_terms
from seedstream.web_sources import clean_result_title, build_similar_query, map_external_genres
from seedstream.utils import (
    DISCOVERY_FILTERS, MAX_SEED_GENRES, MAX_SEARCH_TERMS, MAX_CURATED_KEYWORDS,
    MAX_TOP_CAST, MAX_KEY_CREW, MAX_PEOPLE, DISCOVERY_CREW_JOBS, synthetic_item_id
)

logger = logging.getLogger(__name__)

# Strategy names in merge priority order
STRATEGY_ORDER = ["similar", "genre", "lexical", "curated_keyword", "cast_crew", "web"]


def _safe_call(label, func, *args, **kwargs):
    """Run one network-dependent step; a failure yields an empty result."""
    try:
        return func(*args, **kwargs) or []
    except Exception as e:
        logger.warning(f"Discovery step '{label}' failed: {e}")
        return []


def _parallel_map(func, values, max_workers):
    """Map over a small bounded list of sub-queries, preserving order."""
    values = list(values)
    if not values:
        return []
    with concurrent.futures.ThreadPoolExecutor(max_workers=min(max_workers, len(values))) as executor:
        return list(executor.map(func, values))


class CandidateDiscovery:
    """
    Builds a deduplicated candidate list for a seed item.

    Args:
        directory: Content directory client
        web_search: Optional web-search client with `search(query)`
        enrichment: Optional metadata client with `lookup(title, year=None)`
        config: RecommenderConfig
    """

    def __init__(self, directory, web_search=None, enrichment=None, config=None):
        self.directory = directory
        self.web_search = web_search
        self.enrichment = enrichment
        self.config = config or RecommenderConfig()

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------

    def _strategy_limits(self):
        c = self.config
        return {
            "similar": c.similar_limit,
            "genre": c.genre_search_limit,
            "lexical": c.keyword_search_limit,
            "curated_keyword": c.curated_keyword_limit,
            "cast_crew": None,
            "web": None,
        }

    def _strategies(self):
        strategies = {
            "similar": self.discover_similar,
            "genre": self.discover_by_genre,
            "lexical": self.discover_by_search_terms,
            "curated_keyword": self.discover_by_curated_keywords,
            "cast_crew": self.discover_by_cast_crew,
        }
        if self.web_search is not None:
            strategies["web"] = self.discover_from_web
        return strategies

    def _run_strategy(self, name, func, seed, vocabulary):
        try:
            return func(seed, vocabulary)
        except Exception as e:
            logger.warning(f"Discovery strategy '{name}' failed: {e}")
            return []

    def discover(self, seed, vocabulary=None):
        """
        Run every strategy and merge the results.

        Args:
            seed: Seed Item
            vocabulary: Pooled genre vocabulary (list of Genre)

        Returns:
            List of Item, at most `config.max_candidates`, in strategy-priority order
        """
        vocabulary = vocabulary or []
        strategies = self._strategies()

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = {
                name: executor.submit(self._run_strategy, name, func, seed, vocabulary)
                for name, func in strategies.items()
            }
            concurrent.futures.wait(list(futures.values()))

        results = {name: future.result() for name, future in futures.items()}
        merged, seen = self.merge(seed, results)

        if len(merged) < self.config.fallback_threshold:
            merged.extend(self.discover_fallback(seed, seen, len(merged)))

        counts = ", ".join(f"{name}={len(results[name])}" for name in STRATEGY_ORDER if name in results)
        logger.info(f"Discovered {len(merged)} candidates for '{seed.title}' ({counts})")
        return merged[:self.config.max_candidates]

    def merge(self, seed, results):
        """
        Combine strategy results in priority order, first-seen wins.

        Args:
            seed: Seed Item; its own key is never admitted
            results: Dict of strategy name -> list of Item

        Returns:
            Tuple of (merged list, seen key set)
        """
        limits = self._strategy_limits()
        seen = {seed.key}
        merged = []

        for name in STRATEGY_ORDER:
            limit = limits.get(name)
            added = 0
            for item in results.get(name, []):
                if limit is not None and added >= limit:
                    break
                candidate = replace(item, media_type=seed.media_type)
                if candidate.key in seen:
                    continue
                seen.add(candidate.key)
                merged.append(candidate)
                added += 1

        return merged, seen

    def discover_fallback(self, seed, seen, current_count):
        """Unfiltered similar-content items used only to top up a thin pool."""
        wanted = max(0, self.config.fallback_fill_target - current_count)
        if wanted == 0:
            return []

        fallback = []
        for item in _safe_call("fallback", self.directory.get_similar, seed.id, seed.media_type):
            candidate = replace(item, media_type=seed.media_type, is_fallback=True)
            if candidate.key in seen:
                continue
            seen.add(candidate.key)
            fallback.append(candidate)
            if len(fallback) >= wanted:
                break
        return fallback

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def discover_similar(self, seed, vocabulary=None):
        similar = self.directory.get_similar(seed.id, seed.media_type)
        return filter_candidates(similar, seed, **DISCOVERY_FILTERS["similar"])

    def discover_by_genre(self, seed, vocabulary=None):
        def by_genre(genre_id):
            filters = {
                "with_genres": str(genre_id),
                "sort_by": "vote_average.desc",
                "vote_count.gte": 100,
                "page": 1,
            }
            found = _safe_call(f"genre {genre_id}", self.directory.discover, seed.media_type, filters)
            return filter_candidates(found, seed, **DISCOVERY_FILTERS["genre"])

        batches = _parallel_map(by_genre, seed.genre_ids[:MAX_SEED_GENRES], MAX_SEED_GENRES)
        return [item for batch in batches for item in batch]

    def discover_by_search_terms(self, seed, vocabulary=None):
        terms = extract_search_terms(seed.title, seed.synopsis)

        def by_term(term):
            found = _safe_call(f"search '{term}'", self.directory.search_multi, term)
            same_type = [item for item in found if item.media_type == seed.media_type]
            return filter_candidates(same_type, seed, **DISCOVERY_FILTERS["lexical"])

        batches = _parallel_map(by_term, terms[:MAX_SEARCH_TERMS], MAX_SEARCH_TERMS)
        return [item for batch in batches for item in batch]

    def discover_by_curated_keywords(self, seed, vocabulary=None):
        keywords = self.directory.get_keywords(seed.id, seed.media_type)[:MAX_CURATED_KEYWORDS]
        if not keywords:
            return []

        thresholds = DISCOVERY_FILTERS["curated_keyword"]
        filters = {
            "with_keywords": "|".join(str(k.id) for k in keywords),
            "sort_by": "vote_average.desc",
            "vote_count.gte": thresholds["min_vote_count"],
            "page": 1,
        }
        found = self.directory.discover(seed.media_type, filters)
        return [
            item for item in filter_candidates(found, seed, **thresholds)
            if has_genre_overlap(seed.genre_ids, item.genre_ids)
        ]

    def discover_by_cast_crew(self, seed, vocabulary=None):
        credits = self.directory.get_credits(seed.id, seed.media_type)
        cast = [c.name for c in credits.cast[:MAX_TOP_CAST]]
        crew = [c.name for c in credits.crew if c.job in DISCOVERY_CREW_JOBS][:MAX_KEY_CREW]
        people = [name for name in cast + crew if name][:MAX_PEOPLE]

        def by_person(name):
            person_ids = _safe_call(f"person '{name}'", self.directory.search_person, name)
            if not person_ids:
                return []
            works = _safe_call(f"works of '{name}'", self.directory.get_person_combined_works, person_ids[0])
            same_type = [w for w in works if w.media_type == seed.media_type and w.key != seed.key]
            kept = filter_candidates(same_type, seed, **DISCOVERY_FILTERS["cast_crew"])
            return kept[:self.config.cast_crew_limit]

        batches = _parallel_map(by_person, people, MAX_PEOPLE)
        return [item for batch in batches for item in batch]

    def discover_from_web(self, seed, vocabulary=None):
        if self.web_search is None or not seed.title:
            return []

        query = build_similar_query(seed.title, seed.media_type)
        hits = self.web_search.search(query)[:self.config.web_search_limit]

        def resolve(hit):
            try:
                return self.resolve_web_result(hit, seed, vocabulary or [])
            except Exception as e:
                logger.warning(f"Could not resolve web result '{hit.title}': {e}")
                return None

        resolved = [item for item in _parallel_map(resolve, hits, self.config.web_search_limit) if item]
        return filter_candidates(resolved, seed, **DISCOVERY_FILTERS["web"])

    # ------------------------------------------------------------------
    # Web result resolution
    # ------------------------------------------------------------------

    def _match_in_directory(self, title, media_type):
        wanted = title.lower()
        found = _safe_call(f"directory match '{title}'", self.directory.search_multi, title)
        matches = [item for item in found if item.media_type == media_type]
        for item in matches:
            if item.title.lower() == wanted:
                return item
        for item in matches:
            if wanted in item.title.lower():
                return item
        return None

    def resolve_web_result(self, hit, seed, vocabulary):
        """
        Turn a web-search hit into an Item.

        Tries the content directory first, then the enrichment service, then
        builds a bare item from the snippet. Every outcome is flagged as
        externally sourced.
        """
        title = clean_result_title(hit.title)
        if not title:
            return None

        match = self._match_in_directory(title, seed.media_type)
        if match is not None:
            return replace(match, is_external_sourced=True, source_snippet=hit.snippet)

        record = None
        if self.enrichment is not None:
            try:
                record = self.enrichment.lookup(title)
            except Exception as e:
                logger.warning(f"Enrichment lookup failed for '{title}': {e}")

        if record is not None:
            return Item(
                id=synthetic_item_id(record.title or title),
                media_type=seed.media_type,
                title=record.title or title,
                synopsis=record.plot or "No overview available",
                release_date=f"{record.year}-01-01" if record.year else None,
                rating=record.rating,
                vote_count=record.vote_count,
                genre_ids=map_external_genres(record.genres, vocabulary),
                poster_path=record.poster,
                is_external_sourced=True,
                source_snippet=hit.snippet,
            )

        return Item(
            id=synthetic_item_id(title),
            media_type=seed.media_type,
            title=title,
            synopsis=hit.snippet or "No overview available",
            is_external_sourced=True,
            source_snippet=hit.snippet,
        )
