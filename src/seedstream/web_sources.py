"""
Web-search and metadata-enrichment sources used to widen discovery beyond the
content directory.
"""

import logging
from typing import List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from seedstream.errors import SourceUnavailableError
from seedstream.models import WebResult, EnrichmentRecord, MOVIE, SERIES
from seedstream.utils import OMDB_GENRE_MAP, WEB_TITLE_SUFFIXES, TRUSTED_REVIEW_SITES

logger = logging.getLogger(__name__)

GOOGLE_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"
OMDB_BASE_URL = "http://www.omdbapi.com/"
REQUEST_TIMEOUT = 10


def clean_result_title(title):
    """Strip review-site boilerplate such as ' - IMDb' from a result title."""
    title = (title or '').strip()
    for suffix in WEB_TITLE_SUFFIXES:
        if suffix in title:
            return title.replace(suffix, '').strip()
    return title


def build_similar_query(seed_title, media_type):
    """Web-search query for titles similar to the seed on trusted review sites."""
    noun = "shows" if media_type == SERIES else "movies"
    sites = " OR ".join(f"site:{site}" for site in TRUSTED_REVIEW_SITES)
    return f'"{seed_title}" similar {noun} {sites}'


def map_external_genres(external_genres, vocabulary):
    """
    Translate a comma-separated OMDb genre string into directory genre ids.

    Args:
        external_genres: e.g. "Action, Sci-Fi"
        vocabulary: List of Genre from the content directory

    Returns:
        List of genre ids in first-found order, without duplicates
    """
    if not external_genres:
        return []

    mapped = []
    for label in (g.strip() for g in external_genres.split(',')):
        if not label:
            continue
        for candidate_name in OMDB_GENRE_MAP.get(label, [label]):
            wanted = candidate_name.lower()
            for genre in vocabulary:
                name = genre.name.lower()
                if wanted in name or name in wanted:
                    if genre.id not in mapped:
                        mapped.append(genre.id)
                    break
    return mapped


def _create_session(retries=2):
    session = requests.Session()
    retry = Retry(
        total=retries,
        read=retries,
        connect=retries,
        backoff_factor=0.5,
        status_forcelist=(500, 502, 503, 504)
    )
    adapter = HTTPAdapter(max_retries=retry, pool_connections=5, pool_maxsize=5)
    session.mount('http://', adapter)
    session.mount('https://', adapter)
    return session


class GoogleSearchClient:
    """Google Custom Search JSON API client."""

    def __init__(self, api_key, cse_id, session=None, timeout=REQUEST_TIMEOUT):
        self.api_key = api_key
        self.cse_id = cse_id
        self.session = session or _create_session()
        self.timeout = timeout

    def search(self, query) -> List[WebResult]:
        try:
            response = self.session.get(
                GOOGLE_SEARCH_URL,
                params={"key": self.api_key, "cx": self.cse_id, "q": query, "num": 10},
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            raise SourceUnavailableError("Google Search", f"Request failed: {e}")

        if response.status_code != 200:
            raise SourceUnavailableError("Google Search", f"HTTP {response.status_code}", response.status_code)

        items = response.json().get("items", []) or []
        return [
            WebResult(title=i.get("title", ""), snippet=i.get("snippet", ""), link=i.get("link", ""))
            for i in items
        ]


def _parse_votes(value):
    try:
        return int(str(value).replace(',', ''))
    except (ValueError, TypeError):
        return 0


def _parse_rating(value):
    try:
        return float(value)
    except (ValueError, TypeError):
        return 0.0


class OMDbClient:
    """OMDb title lookup client."""

    def __init__(self, api_key, session=None, timeout=REQUEST_TIMEOUT):
        self.api_key = api_key
        self.session = session or _create_session()
        self.timeout = timeout

    def lookup(self, title, year=None) -> Optional[EnrichmentRecord]:
        """
        Look a title up by name.

        Returns:
            EnrichmentRecord, or None if OMDb does not know the title
        """
        params = {"apikey": self.api_key, "t": title}
        if year:
            params["y"] = year

        try:
            response = self.session.get(OMDB_BASE_URL, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise SourceUnavailableError("OMDb", f"Request failed: {e}")

        if response.status_code != 200:
            raise SourceUnavailableError("OMDb", f"HTTP {response.status_code}", response.status_code)

        data = response.json()
        if data.get("Response") != "True":
            logger.debug(f"OMDb has no match for '{title}': {data.get('Error')}")
            return None

        poster = data.get("Poster")
        year_value = (data.get("Year") or "")[:4]
        return EnrichmentRecord(
            title=data.get("Title", title),
            genres=data.get("Genre", ""),
            rating=_parse_rating(data.get("imdbRating")),
            vote_count=_parse_votes(data.get("imdbVotes")),
            plot=data.get("Plot", "") if data.get("Plot") != "N/A" else "",
            poster=poster if poster and poster != "N/A" else None,
            type=SERIES if data.get("Type") == "series" else MOVIE,
            year=year_value if year_value.isdigit() else None,
        )
