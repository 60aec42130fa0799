"""
Text and vector similarity primitives, search-term extraction and tone classification.
"""

import math
from collections import Counter

import nltk
import numpy as np
from nltk import word_tokenize
from nltk.corpus import stopwords
from sentence_transformers.util import cos_sim

from seedstream.utils import (
    SEARCH_TERM_STOP_WORDS, SIMILARITY_STOP_WORDS, TONE_KEYWORDS, NEUTRAL_TONE
)

# Download required NLTK data
nltk.download('punkt', quiet=True)
nltk.download('punkt_tab', quiet=True)
nltk.download('stopwords', quiet=True)

# Search terms skip both NLTK's English stop words and our own filler list
search_stop_words = set(stopwords.words('english')) | SEARCH_TERM_STOP_WORDS

# Cross-tone pairs that still read as compatible
TONE_PAIR_SCORES = {
    frozenset(("serious", "mystery")): 15,
    frozenset(("action", "thriller")): 15,
}
MATCHING_TONE_SCORE = 20
LIGHT_TONE_SCORE = 10


def cosine_similarity(vec_a, vec_b):
    """
    Cosine similarity between two vectors.

    Args:
        vec_a: Sequence of floats
        vec_b: Sequence of floats

    Returns:
        Float in [-1, 1]; 0.0 for empty, mismatched or zero-norm vectors
    """
    a = np.asarray(vec_a, dtype=float).ravel()
    b = np.asarray(vec_b, dtype=float).ravel()
    if a.size == 0 or b.size == 0 or a.size != b.size:
        return 0.0

    if not np.any(a) or not np.any(b):
        return 0.0

    return float(cos_sim(a, b))


def tokenize(text):
    """Lower-cased word tokens, punctuation dropped."""
    return [token for token in word_tokenize((text or '').lower()) if token.isalnum()]


def normalize_words(text):
    """Tokenize and drop short or filler words."""
    return [w for w in tokenize(text) if len(w) > 2 and w not in SIMILARITY_STOP_WORDS]


def lexical_similarity(text_a, text_b):
    """Jaccard similarity over normalized word sets."""
    words_a = set(normalize_words(text_a))
    words_b = set(normalize_words(text_b))
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def lexical_item_similarity(seed_text, candidate_text, seed_tagline=None, candidate_tagline=None):
    """
    Lexical stand-in for semantic similarity.

    Jaccard overlap of the two texts, plus 0.1 per shared word that occurs at
    most twice across both texts, plus up to 0.2 for shared tagline words.

    Returns:
        Float in [0, 1]
    """
    seed_words = normalize_words(seed_text)
    candidate_words = normalize_words(candidate_text)

    union = set(seed_words) | set(candidate_words)
    if not union:
        jaccard = 0.0
        common = set()
    else:
        common = set(seed_words) & set(candidate_words)
        jaccard = len(common) / len(union)

    frequency = Counter(seed_words + candidate_words)
    rare_word_bonus = sum(1 for word in common if frequency[word] <= 2) * 0.1

    tagline_bonus = 0.0
    if seed_tagline and candidate_tagline:
        shared = set(normalize_words(seed_tagline)) & set(normalize_words(candidate_tagline))
        tagline_bonus = min(0.2, len(shared) * 0.05)

    return min(1.0, jaccard + rare_word_bonus + tagline_bonus)


def extract_search_terms(title, synopsis, limit=5):
    """
    Most frequent meaningful words of a title and synopsis.

    Only alphabetic words longer than three characters that are not stop words
    count. Ties keep the order of first occurrence.

    Returns:
        List of at most `limit` words
    """
    tokens = word_tokenize(f"{title or ''} {synopsis or ''}".lower())
    words = [w for w in tokens if w.isalpha() and len(w) > 3 and w not in search_stop_words]
    counts = Counter(words)
    ranked = sorted(counts.items(), key=lambda pair: -pair[1])
    return [word for word, _ in ranked[:limit]]


def classify_tone(text):
    """Return the first tone whose keywords appear in the text, else neutral."""
    lowered = (text or '').lower()
    for tone, keywords in TONE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return tone
    return NEUTRAL_TONE


def tone_compatibility(seed_tone, candidate_tone):
    """Score 0-20 for how well two tones go together."""
    if seed_tone == NEUTRAL_TONE or candidate_tone == NEUTRAL_TONE:
        return 0
    if seed_tone == candidate_tone:
        return LIGHT_TONE_SCORE if seed_tone == "light" else MATCHING_TONE_SCORE
    return TONE_PAIR_SCORES.get(frozenset((seed_tone, candidate_tone)), 0)


def log_votes(vote_count):
    """log10 of a vote count, treating anything below one vote as one."""
    return math.log10(max(1, vote_count or 0))
