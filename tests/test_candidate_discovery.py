"""
Unit tests for multi-strategy candidate discovery.
"""

import unittest
import sys
import os

sys.path.insert(0, os.path.dirname(__file__))

from fake_sources import FakeDirectory, FakeWebSearch, FakeEnrichment, make_item
from seedstream.candidate_discovery import CandidateDiscovery, STRATEGY_ORDER
from seedstream.config import RecommenderConfig
from seedstream.models import (
    Credit, Credits, EnrichmentRecord, Genre, Keyword, WebResult, MOVIE, SERIES
)

VOCABULARY = [
    Genre(878, "Science Fiction"),
    Genre(18, "Drama"),
    Genre(28, "Action"),
    Genre(12, "Adventure"),
]


class TestCandidateDiscovery(unittest.TestCase):

    def setUp(self):
        self.seed = make_item(1, "Seed", genre_ids=[878, 18])

    def ids(self, items):
        return [item.id for item in items]

    def test_strategy_order(self):
        self.assertEqual(
            STRATEGY_ORDER, ["similar", "genre", "lexical", "curated_keyword", "cast_crew", "web"]
        )

    def test_merge_dedupes_in_priority_order(self):
        directory = FakeDirectory(
            similar=[make_item(2, "A", tagline="from similar"), make_item(1, "Seed")],
            discover_results=[make_item(2, "A", tagline="from genre"), make_item(3, "B")],
            search_results={"seed": [make_item(4, "C"), make_item(3, "B")]},
        )

        candidates = CandidateDiscovery(directory).discover(self.seed, VOCABULARY)

        self.assertEqual(self.ids(candidates), [2, 3, 4])
        self.assertEqual(candidates[0].tagline, "from similar")
        self.assertNotIn(self.seed.key, [c.key for c in candidates])

    def test_no_duplicate_keys(self):
        shared = [make_item(i, f"T{i}") for i in range(2, 14)]
        directory = FakeDirectory(similar=shared, discover_results=shared, search_results={"seed": shared})

        candidates = CandidateDiscovery(directory).discover(self.seed)

        keys = [c.key for c in candidates]
        self.assertEqual(len(keys), len(set(keys)))

    def test_discovery_is_deterministic(self):
        directory = FakeDirectory(
            similar=[make_item(i, f"S{i}") for i in range(2, 8)],
            discover_results=[make_item(i, f"G{i}") for i in range(5, 12)],
        )
        discovery = CandidateDiscovery(directory)

        self.assertEqual(
            self.ids(discovery.discover(self.seed)), self.ids(discovery.discover(self.seed))
        )

    def test_failing_strategies_are_absorbed(self):
        directory = FakeDirectory(
            similar=[make_item(2, "A"), make_item(3, "B")],
            failing={"discover", "search_multi", "get_keywords", "get_credits"},
        )
        discovery = CandidateDiscovery(directory, web_search=FakeWebSearch(fail=True))

        candidates = discovery.discover(self.seed, VOCABULARY)

        self.assertEqual(self.ids(candidates), [2, 3])

    def test_everything_failing_yields_empty(self):
        directory = FakeDirectory(
            failing={"get_similar", "discover", "search_multi", "get_keywords", "get_credits"}
        )
        self.assertEqual(CandidateDiscovery(directory).discover(self.seed), [])

    def test_fallback_marks_items(self):
        # Poorly rated and off-genre: only the fallback admits them
        directory = FakeDirectory(similar=[make_item(10, "Weak", genre_ids=[35], rating=4.0)])

        candidates = CandidateDiscovery(directory).discover(self.seed)

        self.assertEqual(self.ids(candidates), [10])
        self.assertTrue(candidates[0].is_fallback)

    def test_fallback_tops_up_to_fill_target(self):
        directory = FakeDirectory(similar=[make_item(i, f"W{i}", rating=3.0) for i in range(10, 40)])

        candidates = CandidateDiscovery(directory).discover(self.seed)

        self.assertEqual(len(candidates), 20)
        self.assertTrue(all(c.is_fallback for c in candidates))

    def test_no_fallback_when_pool_is_large_enough(self):
        directory = FakeDirectory(discover_results=[make_item(i, f"G{i}") for i in range(10, 22)])

        candidates = CandidateDiscovery(directory).discover(self.seed)

        self.assertGreaterEqual(len(candidates), 10)
        self.assertFalse(any(c.is_fallback for c in candidates))
        # Only the similar strategy itself asked for similar titles
        self.assertEqual(len([c for c in directory.calls if c[0] == "get_similar"]), 1)

    def test_per_strategy_limit(self):
        directory = FakeDirectory(similar=[make_item(i, f"S{i}") for i in range(10, 40)])

        candidates = CandidateDiscovery(directory).discover(self.seed)

        self.assertEqual(len(candidates), 20)

    def test_max_candidates(self):
        directory = FakeDirectory(similar=[make_item(i, f"S{i}") for i in range(10, 40)])
        config = RecommenderConfig(max_candidates=5)

        candidates = CandidateDiscovery(directory, config=config).discover(self.seed)

        self.assertEqual(len(candidates), 5)

    def test_search_terms_skip_other_media_types(self):
        directory = FakeDirectory(search_results={"seed": [
            make_item(1399, "A Show", genre_ids=[18], media_type=SERIES),
            make_item(4, "A Film"),
        ]})

        found = CandidateDiscovery(directory).discover_by_search_terms(self.seed)
        candidates = CandidateDiscovery(directory).discover(self.seed)

        self.assertEqual([item.key for item in found], [(4, MOVIE)])
        self.assertNotIn((1399, MOVIE), [c.key for c in candidates])
        self.assertNotIn((1399, SERIES), [c.key for c in candidates])

    def test_merge_keeps_seed_media_type(self):
        discovery = CandidateDiscovery(FakeDirectory())

        merged, seen = discovery.merge(self.seed, {"similar": [make_item(4, "A Film")]})

        self.assertEqual([c.key for c in merged], [(4, MOVIE)])
        self.assertEqual(seen, {(1, MOVIE), (4, MOVIE)})

    def test_curated_keywords_query(self):
        directory = FakeDirectory(
            keywords={1: [Keyword(1, "android"), Keyword(2, "dystopia")]},
            discover_results=[make_item(5, "Kw match"), make_item(6, "Off genre", genre_ids=[35])],
        )

        found = CandidateDiscovery(directory).discover_by_curated_keywords(self.seed)

        self.assertEqual(self.ids(found), [5])
        keyword_calls = [c for c in directory.calls if c[0] == "discover" and "with_keywords" in c[2]]
        self.assertEqual(keyword_calls[0][2]["with_keywords"], "1|2")

    def test_genre_strategy_uses_first_two_genres(self):
        seed = make_item(1, "Seed", genre_ids=[878, 18, 28])
        directory = FakeDirectory()

        CandidateDiscovery(directory).discover_by_genre(seed)

        queried = sorted(c[2]["with_genres"] for c in directory.calls if c[0] == "discover")
        self.assertEqual(queried, ["18", "878"])

    def test_cast_crew_strategy(self):
        directory = FakeDirectory(
            credits={1: Credits(
                cast=[Credit("Harrison Ford", "cast")],
                crew=[Credit("Ridley Scott", "director", job="Director"),
                      Credit("Vangelis", "other", job="Original Music Composer")]
            )},
            people={"Harrison Ford": [100], "Ridley Scott": [200]},
            works={
                100: [make_item(30, "Witness", genre_ids=[80]), make_item(1, "Seed"),
                      make_item(31, "A Show", media_type=SERIES)],
                200: [make_item(32, "Alien", genre_ids=[27])],
            },
        )

        found = CandidateDiscovery(directory).discover_by_cast_crew(self.seed)

        self.assertEqual(self.ids(found), [30, 32])
        self.assertFalse(any(c[0] == "search_person" and c[1] == "Vangelis" for c in directory.calls))

    def test_cast_crew_capped_per_person(self):
        directory = FakeDirectory(
            credits={1: Credits(cast=[Credit("Prolific Actor", "cast")])},
            people={"Prolific Actor": [100]},
            works={100: [make_item(i, f"W{i}") for i in range(10, 20)]},
        )

        found = CandidateDiscovery(directory).discover_by_cast_crew(self.seed)

        self.assertEqual(len(found), 5)


class TestWebDiscovery(unittest.TestCase):

    def setUp(self):
        self.seed = make_item(1, "Seed", genre_ids=[878, 18])
        self.arrival = make_item(20, "Arrival", genre_ids=[35], rating=7.9, vote_count=15000)
        self.gattaca = EnrichmentRecord(
            title="Gattaca", genres="Sci-Fi, Drama", rating=7.8, vote_count=300000,
            plot="A genetically inferior man assumes the identity of a superior one.", year="1997"
        )

    def test_web_strategy_resolves_results(self):
        directory = FakeDirectory(search_results={"Arrival": [self.arrival]})
        web = FakeWebSearch([
            WebResult("Arrival - IMDb", "A linguist works with the military"),
            WebResult("Gattaca - Rotten Tomatoes", "A sci-fi classic"),
        ])
        discovery = CandidateDiscovery(directory, web, FakeEnrichment({"Gattaca": self.gattaca}))

        found = discovery.discover_from_web(self.seed, VOCABULARY)

        self.assertEqual(
            web.queries, ['"Seed" similar movies site:imdb.com OR site:rottentomatoes.com']
        )
        self.assertEqual([item.title for item in found], ["Arrival", "Gattaca"])
        self.assertTrue(all(item.is_external_sourced for item in found))

        arrival, gattaca = found
        self.assertEqual(arrival.id, 20)
        self.assertEqual(arrival.source_snippet, "A linguist works with the military")
        self.assertLess(gattaca.id, 0)
        self.assertEqual(gattaca.genre_ids, [878, 28, 12, 18])
        self.assertEqual(gattaca.release_date, "1997-01-01")

    def test_web_items_are_admitted_without_genre_overlap(self):
        directory = FakeDirectory(search_results={"Arrival": [self.arrival]})
        web = FakeWebSearch([WebResult("Arrival - IMDb", "A linguist works with the military")])

        candidates = CandidateDiscovery(directory, web).discover(self.seed, VOCABULARY)

        self.assertEqual([c.id for c in candidates], [20])
        self.assertTrue(candidates[0].is_external_sourced)
        self.assertFalse(candidates[0].is_fallback)

    def test_snippet_only_item(self):
        discovery = CandidateDiscovery(FakeDirectory(), FakeWebSearch())

        item = discovery.resolve_web_result(WebResult("Obscure Film - Movie", "Cult favourite"), self.seed, [])

        self.assertEqual(item.title, "Obscure Film")
        self.assertEqual(item.synopsis, "Cult favourite")
        self.assertEqual(item.rating, 0.0)
        self.assertEqual(item.vote_count, 0)
        self.assertEqual(item.genre_ids, [])
        self.assertTrue(item.is_external_sourced)
        self.assertTrue(item.is_synthetic)

    def test_synthetic_ids_are_stable(self):
        discovery = CandidateDiscovery(FakeDirectory(), FakeWebSearch())
        first = discovery.resolve_web_result(WebResult("Obscure Film"), self.seed, [])
        second = discovery.resolve_web_result(WebResult("obscure film"), self.seed, [])
        self.assertEqual(first.id, second.id)

    def test_substring_directory_match(self):
        directory = FakeDirectory(search_results={"Arrival": [make_item(21, "Arrival of the Fleet"), self.arrival]})
        discovery = CandidateDiscovery(directory, FakeWebSearch())

        exact = discovery.resolve_web_result(WebResult("Arrival - IMDb"), self.seed, [])
        self.assertEqual(exact.id, 20)

        directory.search_results = {"Arrival": [make_item(21, "Arrival of the Fleet")]}
        partial = discovery.resolve_web_result(WebResult("Arrival - IMDb"), self.seed, [])
        self.assertEqual(partial.id, 21)

    def test_directory_match_ignores_other_media_types(self):
        directory = FakeDirectory(search_results={"Arrival": [
            make_item(66, "Arrival", media_type=SERIES), self.arrival
        ]})
        discovery = CandidateDiscovery(directory, FakeWebSearch())

        match = discovery.resolve_web_result(WebResult("Arrival - IMDb"), self.seed, [])
        self.assertEqual(match.key, (20, MOVIE))

        directory.search_results = {"Arrival": [make_item(66, "Arrival", media_type=SERIES)]}
        unmatched = discovery.resolve_web_result(WebResult("Arrival - IMDb"), self.seed, [])
        self.assertTrue(unmatched.is_synthetic)

    def test_web_strategy_inactive_without_client(self):
        directory = FakeDirectory()
        self.assertNotIn("web", CandidateDiscovery(directory)._strategies())
        self.assertEqual(CandidateDiscovery(directory).discover_from_web(self.seed), [])


if __name__ == '__main__':
    unittest.main()
