"""
User feedback: star-rating persistence and the preference weights derived from it.
"""

import os
import time
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict

import pandas as pd

from seedstream.models import FeedbackRecord

logger = logging.getLogger(__name__)

FEEDBACK_FILE = "user_feedback.csv"
FEEDBACK_COLUMNS = ["item_id", "media_type", "rating", "timestamp", "genre_ids", "cast", "crew"]
LIST_SEPARATOR = "|"

# Ratings at or above this (1-5 stars) count as positive signal
POSITIVE_RATING_THRESHOLD = 3.5
MAX_PEOPLE_PER_RECORD = 10
PERSONAL_CREW_ROLES = {"director", "writer"}


@dataclass
class FeedbackWeights:
    """Accumulated star weight per genre id and per person name."""
    genre_weight: Dict[int, float] = field(default_factory=dict)
    person_weight: Dict[str, float] = field(default_factory=dict)

    def normalized_genre_weights(self):
        return _normalize(self.genre_weight)

    def normalized_person_weights(self):
        return _normalize(self.person_weight)


def _normalize(weights):
    max_weight = max(weights.values(), default=0)
    if max_weight <= 0:
        return {}
    return {key: weight / max_weight for key, weight in weights.items()}


def aggregate_feedback(records):
    """
    Derive preference weights from past ratings.

    Every record rated at or above POSITIVE_RATING_THRESHOLD adds its star
    rating to each genre and person it touched.

    Args:
        records: Iterable of FeedbackRecord

    Returns:
        FeedbackWeights with raw (un-normalized) weights
    """
    weights = FeedbackWeights()

    for record in records:
        if record.rating < POSITIVE_RATING_THRESHOLD:
            continue
        for genre_id in record.genre_ids:
            weights.genre_weight[genre_id] = weights.genre_weight.get(genre_id, 0.0) + record.rating
        for person in list(record.cast) + list(record.crew):
            weights.person_weight[person] = weights.person_weight.get(person, 0.0) + record.rating

    return weights


def feedback_boost(item, weights):
    """Personalization score 0-20 for a candidate from its genres."""
    if weights is None:
        return 0.0
    boost = 0.0
    for genre_id in item.genre_ids:
        genre_weight = weights.genre_weight.get(genre_id)
        if genre_weight:
            boost += min(10.0, genre_weight * 0.5)
    return min(20.0, boost)


def build_feedback_record(item, rating, credits=None, timestamp=None):
    """
    Capture a rating together with the item's genres and key people.

    Args:
        item: Rated Item
        rating: Star rating, 1-5
        credits: Optional Credits for the item
        timestamp: Seconds since epoch, defaults to now

    Returns:
        FeedbackRecord
    """
    if not 1 <= rating <= 5:
        raise ValueError(f"Star rating must be between 1 and 5, got {rating}")

    cast, crew = [], []
    if credits is not None:
        cast = [c.name for c in credits.cast[:MAX_PEOPLE_PER_RECORD] if c.name]
        crew = [c.name for c in credits.crew if c.role in PERSONAL_CREW_ROLES and c.name]

    return FeedbackRecord(
        item_id=item.id,
        media_type=item.media_type,
        rating=float(rating),
        timestamp=timestamp if timestamp is not None else time.time(),
        genre_ids=list(item.genre_ids),
        cast=cast,
        crew=crew,
    )


def _join(values):
    return LIST_SEPARATOR.join(str(v) for v in values)


def _split(value):
    if not isinstance(value, str) or not value:
        return []
    return [v for v in value.split(LIST_SEPARATOR) if v]


class CsvFeedbackStore:
    """FeedbackRecords kept in a CSV file, one row per (item id, media type)."""

    def __init__(self, path=FEEDBACK_FILE):
        self.path = path
        self._lock = threading.Lock()

    def _read_frame(self):
        if not os.path.exists(self.path):
            return pd.DataFrame(columns=FEEDBACK_COLUMNS)
        return pd.read_csv(self.path, dtype=str, keep_default_na=False)

    def read_all(self):
        """Return every stored FeedbackRecord."""
        with self._lock:
            df = self._read_frame()

        records = []
        for row in df.to_dict("records"):
            try:
                records.append(FeedbackRecord(
                    item_id=int(row["item_id"]),
                    media_type=row["media_type"],
                    rating=float(row["rating"]),
                    timestamp=float(row["timestamp"] or 0),
                    genre_ids=[int(g) for g in _split(row["genre_ids"])],
                    cast=_split(row["cast"]),
                    crew=_split(row["crew"]),
                ))
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping malformed feedback row {row}: {e}")
        return records

    def append_or_replace(self, record):
        """Store a record, replacing any earlier rating of the same item."""
        row = {
            "item_id": str(record.item_id),
            "media_type": record.media_type,
            "rating": str(record.rating),
            "timestamp": str(record.timestamp),
            "genre_ids": _join(record.genre_ids),
            "cast": _join(record.cast),
            "crew": _join(record.crew),
        }

        with self._lock:
            df = self._read_frame()
            if not df.empty:
                same_item = (df["item_id"] == row["item_id"]) & (df["media_type"] == row["media_type"])
                df = df[~same_item]
            df = pd.concat([df, pd.DataFrame([row], columns=FEEDBACK_COLUMNS)], ignore_index=True)
            df.to_csv(self.path, index=False)


class InMemoryFeedbackStore:
    """FeedbackRecords held in memory, e.g. per Streamlit session."""

    def __init__(self, records=None):
        self._records = {}
        for record in records or []:
            self.append_or_replace(record)

    def read_all(self):
        return list(self._records.values())

    def append_or_replace(self, record):
        self._records.pop(record.key, None)
        self._records[record.key] = record
