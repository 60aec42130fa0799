"""
Sentence embeddings with a bounded per-service cache, and semantic similarity
that falls back to lexical overlap when embeddings are unavailable.
"""

import logging
import threading
from collections import OrderedDict

from seedstream.utils import get_embedding_model
from seedstream.similarity import cosine_similarity, lexical_similarity

logger = logging.getLogger(__name__)


def normalize_cache_key(text):
    return (text or '').lower().strip()


class EmbeddingCache:
    """LRU cache of embedding vectors keyed by normalized text."""

    def __init__(self, max_size=512):
        self._cache = OrderedDict()
        self._max_size = max_size
        self._lock = threading.Lock()

    def get(self, text):
        key = normalize_cache_key(text)
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
                return self._cache[key]
        return None

    def set(self, text, vector):
        key = normalize_cache_key(text)
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
            elif len(self._cache) >= self._max_size:
                self._cache.popitem(last=False)
            self._cache[key] = vector

    def clear(self):
        with self._lock:
            self._cache.clear()

    def __len__(self):
        with self._lock:
            return len(self._cache)


class SentenceTransformerEmbedder:
    """
    Embedding service backed by a sentence-transformers model.

    `embed` returns an empty list whenever a vector can't be produced, which
    callers treat as "use lexical similarity instead".
    """

    def __init__(self, model=None, cache=None, enabled=True, model_loader=get_embedding_model):
        self._model = model
        self._model_loader = model_loader
        self.cache = cache if cache is not None else EmbeddingCache()
        self.enabled = enabled
        self._load_failed = False
        self._lock = threading.Lock()

    def _get_model(self):
        with self._lock:
            if self._model is None and not self._load_failed:
                try:
                    self._model = self._model_loader()
                except Exception as e:
                    logger.warning(f"Embedding model unavailable, using lexical similarity: {e}")
                    self._load_failed = True
            return self._model

    def embed(self, text):
        """
        Embed a piece of text.

        Args:
            text: Text to embed

        Returns:
            List of floats, or [] if the service is disabled or failing
        """
        if not self.enabled or not normalize_cache_key(text):
            return []

        cached = self.cache.get(text)
        if cached is not None:
            return cached

        model = self._get_model()
        if model is None:
            return []

        try:
            vector = model.encode(text, convert_to_numpy=True).tolist()
        except Exception as e:
            logger.warning(f"Error embedding text: {e}")
            return []

        self.cache.set(text, vector)
        return vector


def semantic_similarity(text_a, text_b, embedder=None):
    """
    Cosine similarity of two texts' embeddings.

    Falls back to lexical Jaccard similarity when no embedder is configured or
    either text comes back without a vector.
    """
    if embedder is None:
        return lexical_similarity(text_a, text_b)

    vec_a = embedder.embed(text_a)
    vec_b = embedder.embed(text_b)
    if len(vec_a) == 0 or len(vec_b) == 0:
        return lexical_similarity(text_a, text_b)

    return cosine_similarity(vec_a, vec_b)
