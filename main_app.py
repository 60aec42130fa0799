"""
Seed-to-Stream App - pick a seed title, get ranked look-alikes, rate what you watched
"""

import streamlit as st
import sys
import os

# =============================================================================
# IMPORTS AND SETUP
# =============================================================================

# Add src directory to path for imports
current_dir = os.path.dirname(os.path.abspath(__file__))
src_dir = os.path.join(current_dir, 'src')

if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

from seedstream.config import load_config
from seedstream.embeddings import EmbeddingCache, SentenceTransformerEmbedder
from seedstream.errors import SeedValidationError
from seedstream.feedback_system import CsvFeedbackStore, FEEDBACK_FILE
from seedstream.models import SERIES
from seedstream.recommender import Recommender
from seedstream.tmdb_client import TMDBDirectory, get_poster_url
from seedstream.utils import parse_release_year
from seedstream.web_sources import GoogleSearchClient, OMDbClient

CARDS_PER_ROW = 4
SEARCH_RESULT_LIMIT = 8

# =============================================================================
# SESSION STATE MANAGEMENT
# =============================================================================

def initialize_session_state():
    """Initialize all required session state variables."""

    if "seed" not in st.session_state:
        st.session_state.seed = None

    if "search_results" not in st.session_state:
        st.session_state.search_results = []

    if "recommendations" not in st.session_state:
        st.session_state.recommendations = []

    # Ratings given this session, keyed by (id, media type)
    if "ratings_given" not in st.session_state:
        st.session_state.ratings_given = {}


@st.cache_resource
def build_recommender():
    """Wire the recommender to TMDB, embeddings, optional web sources and the feedback file."""
    config = load_config()

    web_search = None
    if config.enable_web_search:
        web_search = GoogleSearchClient(config.google_api_key, config.google_cse_id)

    enrichment = OMDbClient(config.omdb_api_key) if config.enable_enrichment else None

    embedder = SentenceTransformerEmbedder(
        cache=EmbeddingCache(max_size=config.embedding_cache_size),
        enabled=config.enable_embeddings
    )

    return Recommender(
        directory=TMDBDirectory(api_key=config.tmdb_api_key),
        embedder=embedder,
        web_search=web_search,
        enrichment=enrichment,
        feedback_store=CsvFeedbackStore(FEEDBACK_FILE),
        config=config
    )

# =============================================================================
# CORE FUNCTIONS
# =============================================================================

def describe_item(item):
    year = parse_release_year(item.release_date)
    kind = "Series" if item.media_type == SERIES else "Movie"
    return f"{item.title} ({year or 'Unknown'}) · {kind}"


def search_seeds(recommender, query):
    """Search the directory for seed candidates."""
    try:
        return recommender.directory.search_multi(query)[:SEARCH_RESULT_LIMIT]
    except Exception as e:
        st.error(f"❌ Error searching for titles: {e}")
        return []


def generate_recommendations(recommender, seed):
    """Rank recommendations for the chosen seed."""
    try:
        return recommender.rank(seed)
    except SeedValidationError as e:
        st.error(f"❌ {e}")
        return []


def record_rating(recommender, item, stars):
    """Store a star rating so later runs are personalized."""
    try:
        recommender.record_rating(item, stars)
        st.session_state.ratings_given[item.key] = stars
    except Exception as e:
        st.warning(f"Could not save your rating: {e}")

# =============================================================================
# UI COMPONENTS
# =============================================================================

def render_search(recommender):
    """Search box plus a pick list of matching titles."""
    query = st.text_input("🔍 Search for a movie or TV show", placeholder="e.g. Blade Runner")

    if st.button("Search", type="primary") and query.strip():
        st.session_state.search_results = search_seeds(recommender, query)
        if not st.session_state.search_results:
            st.info("💡 No matches. Try a different spelling or a more common title.")

    results = st.session_state.search_results
    if results:
        index = st.selectbox(
            "Pick your seed title",
            options=range(len(results)),
            format_func=lambda i: describe_item(results[i])
        )
        if st.button("🎯 Find similar titles"):
            st.session_state.seed = results[index]
            with st.spinner("Finding perfect matches..."):
                st.session_state.recommendations = generate_recommendations(recommender, results[index])


def render_breakdown(breakdown):
    rows = {
        "Genre": breakdown.genre_score,
        "Rating": breakdown.rating_score,
        "Plot similarity": breakdown.content_score,
        "Cast & crew": breakdown.cast_crew_score,
        "Popularity": breakdown.popularity_score,
        "Tone": breakdown.tone_score,
        "Your taste": breakdown.feedback_score,
        "Keywords": breakdown.keyword_score,
    }
    for label, value in rows.items():
        st.caption(f"{label}: {value}")


def render_card(recommender, recommendation, position):
    item = recommendation.item
    poster = get_poster_url(item.poster_path)
    if poster:
        st.image(poster, use_container_width=True)

    st.markdown(f"**{item.title}**")
    st.caption(describe_item(item))
    st.progress(recommendation.total_score / 120, text=f"Score {recommendation.total_score}/120")
    st.write(recommendation.justification)

    if item.is_external_sourced:
        st.caption("🌐 Found via web search")
    if item.is_fallback:
        st.caption("⚠️ Fallback suggestion")

    with st.expander("Score breakdown"):
        render_breakdown(recommendation.breakdown)

    stars = st.select_slider(
        "Your rating",
        options=[0, 1, 2, 3, 4, 5],
        value=st.session_state.ratings_given.get(item.key, 0),
        format_func=lambda s: "Not rated" if s == 0 else "⭐" * s,
        key=f"rating_{item.media_type}_{item.id}_{position}"
    )
    if stars and stars != st.session_state.ratings_given.get(item.key):
        record_rating(recommender, item, stars)


def render_recommendations(recommender):
    seed = st.session_state.seed
    if seed is None:
        st.info("Search for a movie or TV show above to get recommendations.")
        return

    recommendations = st.session_state.recommendations
    if not recommendations:
        st.warning("No recommendations found. Try selecting a different seed title.")
        return

    st.markdown(f"### 🎬 Because you picked *{seed.title}*")
    st.caption(f"Found {len(recommendations)} similar titles, scored by genre, plot, people, tone and your ratings")

    for start in range(0, len(recommendations), CARDS_PER_ROW):
        cols = st.columns(CARDS_PER_ROW)
        for offset, rec in enumerate(recommendations[start:start + CARDS_PER_ROW]):
            with cols[offset]:
                render_card(recommender, rec, start + offset)

# =============================================================================
# MAIN APPLICATION
# =============================================================================

def main():
    """Main application function."""
    st.set_page_config(
        page_title="Seed to Stream",
        page_icon="🎬",
        layout="wide"
    )

    initialize_session_state()

    st.title("🎬 Seed to Stream")
    st.markdown("Pick a title you love and discover what to watch next.")

    recommender = build_recommender()

    render_search(recommender)
    st.divider()
    render_recommendations(recommender)

if __name__ == "__main__":
    main()
