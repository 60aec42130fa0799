"""
Quality and relevance filtering of raw candidate lists.
"""

from seedstream.utils import parse_release_year, current_year


def has_genre_overlap(seed_genres, candidate_genres):
    """True if the two genre collections share at least one id."""
    return bool(set(seed_genres or []) & set(candidate_genres or []))


def filter_candidates(candidates, seed, min_rating=6.0, min_vote_count=100,
                      max_age_years=50, require_genre_overlap=True, year=None):
    """
    Drop low-rated, little-voted, old or (optionally) off-genre candidates.

    Args:
        candidates: List of Item
        seed: Seed Item, used for the genre overlap check
        min_rating: Minimum rating on the 0-10 scale
        min_vote_count: Minimum number of votes
        max_age_years: Maximum age in years; undated items are never rejected on age
        require_genre_overlap: Require at least one genre shared with the seed
        year: Reference year, defaults to the current year

    Returns:
        List of Item preserving input order
    """
    year = year if year is not None else current_year()
    kept = []

    for candidate in candidates:
        if (candidate.rating or 0) < min_rating:
            continue
        if (candidate.vote_count or 0) < min_vote_count:
            continue

        release_year = parse_release_year(candidate.release_date)
        if release_year is not None and year - release_year > max_age_years:
            continue

        if require_genre_overlap and not has_genre_overlap(seed.genre_ids, candidate.genre_ids):
            continue

        kept.append(candidate)

    return kept
