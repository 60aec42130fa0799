"""
Content directory client backed by TMDB through tmdbv3api.
"""

import logging
import functools

from tmdbv3api import TMDb, Movie, TV, Discover, Genre as GenreApi, Search, Person

from seedstream.errors import SourceUnavailableError
from seedstream.models import Item, Genre, Credit, Credits, Keyword, MOVIE, SERIES
from seedstream.utils import get_field

logger = logging.getLogger(__name__)

IMAGE_BASE_URL = "https://image.tmdb.org/t/p"
DIRECTOR_JOBS = {"Director"}
WRITER_JOBS = {"Writer", "Screenplay"}


def to_tmdb_media_type(media_type):
    return "tv" if media_type == SERIES else "movie"


def from_tmdb_media_type(value, default=MOVIE):
    if value == "tv":
        return SERIES
    if value == "movie":
        return MOVIE
    return default


def crew_role(job):
    if job in DIRECTOR_JOBS:
        return "director"
    if job in WRITER_JOBS:
        return "writer"
    return "other"


def get_poster_url(poster_path, size="w500"):
    """Full poster URL for a TMDB poster path."""
    if not poster_path:
        return None
    if str(poster_path).startswith("http"):
        return poster_path
    return f"{IMAGE_BASE_URL}/{size}{poster_path}"


def _results(response, key="results"):
    """Unwrap a tmdbv3api response that may or may not be keyed by `key`."""
    if response is None:
        return []
    nested = get_field(response, key)
    if nested is not None and not isinstance(nested, (str, bytes)):
        return list(nested)
    if isinstance(response, dict):
        return []
    try:
        return list(response)
    except TypeError:
        return []


def item_from_tmdb(raw, media_type=MOVIE):
    """
    Convert a raw TMDB result into an Item.

    Args:
        raw: Dict or tmdbv3api object
        media_type: Media type to use when the result does not carry one

    Returns:
        Item
    """
    genre_ids = get_field(raw, 'genre_ids')
    if not genre_ids:
        genre_ids = [get_field(g, 'id') for g in get_field(raw, 'genres', [])]

    return Item(
        id=int(get_field(raw, 'id', 0)),
        media_type=from_tmdb_media_type(get_field(raw, 'media_type'), media_type),
        title=get_field(raw, 'title') or get_field(raw, 'name') or '',
        synopsis=get_field(raw, 'overview', '') or '',
        release_date=get_field(raw, 'release_date') or get_field(raw, 'first_air_date') or None,
        rating=float(get_field(raw, 'vote_average', 0) or 0),
        vote_count=int(get_field(raw, 'vote_count', 0) or 0),
        genre_ids=[g for g in genre_ids if g is not None],
        tagline=get_field(raw, 'tagline') or None,
        poster_path=get_field(raw, 'poster_path'),
    )


def tmdb_call(operation):
    """Turn any failure inside a TMDB call into SourceUnavailableError."""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except SourceUnavailableError:
                raise
            except Exception as e:
                raise SourceUnavailableError("TMDB", f"{operation} failed: {e}")
        return wrapper
    return decorator


class TMDBDirectory:
    """Content directory operations over the TMDB API."""

    def __init__(self, api_key=None, language="en"):
        self.tmdb = TMDb()
        if api_key:
            self.tmdb.api_key = api_key
        self.tmdb.language = language
        self.movie_api = Movie()
        self.tv_api = TV()
        self.discover_api = Discover()
        self.genre_api = GenreApi()
        self.search_api = Search()
        self.person_api = Person()

    def _media_api(self, media_type):
        return self.tv_api if media_type == SERIES else self.movie_api

    @tmdb_call("search_multi")
    def search_multi(self, query):
        if not (query or '').strip():
            return []
        results = _results(self.search_api.multi(query))
        return [
            item_from_tmdb(r) for r in results
            if get_field(r, 'media_type') in ("movie", "tv")
        ]

    @tmdb_call("get_similar")
    def get_similar(self, item_id, media_type):
        results = _results(self._media_api(media_type).similar(item_id))
        return [item_from_tmdb(r, media_type) for r in results]

    @tmdb_call("get_details")
    def get_details(self, item_id, media_type):
        return item_from_tmdb(self._media_api(media_type).details(item_id), media_type)

    @tmdb_call("get_credits")
    def get_credits(self, item_id, media_type):
        response = self._media_api(media_type).credits(item_id)
        cast = [
            Credit(name=get_field(c, 'name', ''), role="cast", order=get_field(c, 'order', i))
            for i, c in enumerate(get_field(response, 'cast', []))
        ]
        crew = [
            Credit(name=get_field(c, 'name', ''), role=crew_role(get_field(c, 'job', '')),
                   order=i, job=get_field(c, 'job', ''))
            for i, c in enumerate(get_field(response, 'crew', []))
        ]
        return Credits(cast=cast, crew=crew)

    @tmdb_call("get_keywords")
    def get_keywords(self, item_id, media_type):
        response = self._media_api(media_type).keywords(item_id)
        raw = get_field(response, 'keywords')
        if raw is None:
            raw = _results(response)
        return [Keyword(id=get_field(k, 'id'), name=get_field(k, 'name', '')) for k in raw]

    @tmdb_call("discover")
    def discover(self, media_type, filters):
        if media_type == SERIES:
            response = self.discover_api.discover_tv_shows(filters)
        else:
            response = self.discover_api.discover_movies(filters)
        return [item_from_tmdb(r, media_type) for r in _results(response)]

    @tmdb_call("get_genre_vocabulary")
    def get_genre_vocabulary(self, media_type):
        if media_type == SERIES:
            response = self.genre_api.tv_list()
        else:
            response = self.genre_api.movie_list()
        return [Genre(id=get_field(g, 'id'), name=get_field(g, 'name', '')) for g in _results(response, "genres")]

    @tmdb_call("search_person")
    def search_person(self, name):
        return [get_field(p, 'id') for p in _results(self.search_api.people(name))]

    @tmdb_call("get_person_combined_works")
    def get_person_combined_works(self, person_id):
        response = self.person_api.combined_credits(person_id)
        return [item_from_tmdb(r) for r in get_field(response, 'cast', [])]
