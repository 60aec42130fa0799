#!/usr/bin/env python3
"""
Offline test runner for the Seed-to-Stream recommender.

Suites group the test modules by the part of the ranking pipeline they cover.
Outbound connections are refused while tests run, so a test that reaches a
real TMDB, Google or OMDb endpoint fails instead of passing on live data.

Usage:
  python test_runner.py                    - Run every suite offline
  python test_runner.py discovery scoring  - Run selected suites
  python test_runner.py --list             - Show suites and their modules
  python test_runner.py --deps             - Check installed dependencies
  python test_runner.py --allow-network    - Do not block outbound connections
"""

import argparse
import importlib.util
import os
import socket
import sys
import time
import unittest
from contextlib import contextmanager, nullcontext

ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, os.path.join(ROOT, 'src'))
sys.path.insert(0, os.path.join(ROOT, 'tests'))

SUITES = {
    "primitives": ("📐 Similarity, embeddings and filtering",
                   ["test_similarity", "test_embeddings", "test_candidate_filter"]),
    "discovery": ("🔍 Discovery strategies, merge and fallback",
                  ["test_candidate_discovery"]),
    "scoring": ("🎯 Sub-scores, totals and ranking",
                ["test_movie_scoring"]),
    "feedback": ("📊 Ratings, preference weights and stores",
                 ["test_feedback_system"]),
    "entry": ("🎬 rank(seed) and rating capture",
              ["test_recommender"]),
    "sources": ("🌐 TMDB, Google Search and OMDb clients",
                ["test_tmdb_client", "test_web_sources"]),
    "support": ("🛠️  Configuration, records and helpers",
                ["test_config", "test_utils"]),
}

# (distribution, import name)
DEPENDENCIES = [
    ("streamlit", "streamlit"),
    ("requests", "requests"),
    ("urllib3", "urllib3"),
    ("tmdbv3api", "tmdbv3api"),
    ("sentence-transformers", "sentence_transformers"),
    ("nltk", "nltk"),
    ("numpy", "numpy"),
    ("pandas", "pandas"),
]


class NetworkAccessError(RuntimeError):
    pass


@contextmanager
def network_blocked():
    """Refuse outbound socket connections for the duration of the block."""
    original_connect = socket.socket.connect

    def refuse(sock, address):
        raise NetworkAccessError(f"test tried to connect to {address}")

    socket.socket.connect = refuse
    try:
        yield
    finally:
        socket.socket.connect = original_connect


def check_dependencies():
    missing = [dist for dist, module in DEPENDENCIES if importlib.util.find_spec(module) is None]
    for dist, _ in DEPENDENCIES:
        print(f"{'❌' if dist in missing else '✅'} {dist}")
    if missing:
        print(f"\n💡 Install with: pip install -e .[test]  (missing: {', '.join(missing)})")
        return False
    return True


def prepare_text_data():
    """Import the similarity module once so its NLTK data is fetched before the network closes."""
    import seedstream.similarity  # noqa: F401


def run_suites(names, allow_network=False):
    loader = unittest.TestLoader()
    runner = unittest.TextTestRunner(verbosity=1, buffer=True)
    summary = []

    guard = nullcontext() if allow_network else network_blocked()
    start = time.time()
    with guard:
        for name in names:
            description, modules = SUITES[name]
            print(f"\n{description}")
            print("-" * 60)
            result = runner.run(loader.loadTestsFromNames(modules))
            summary.append((name, result))

    print("\n" + "=" * 60)
    print(f"⏱️  {time.time() - start:.2f}s  {'(network allowed)' if allow_network else '(offline)'}")
    ok = True
    for name, result in summary:
        problems = len(result.failures) + len(result.errors)
        ok = ok and result.wasSuccessful()
        status = "✅" if result.wasSuccessful() else "❌"
        print(f"{status} {name:<11} {result.testsRun:>4} run, {problems} failing, {len(result.skipped)} skipped")
    return ok


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run the Seed-to-Stream test suites")
    parser.add_argument("suites", nargs="*", help=f"Suites to run (default: all of {', '.join(SUITES)})")
    parser.add_argument("--list", action="store_true", help="List suites and exit")
    parser.add_argument("--deps", action="store_true", help="Check dependencies and exit")
    parser.add_argument("--allow-network", action="store_true", help="Do not block outbound connections")
    args = parser.parse_args(argv)

    unknown = [name for name in args.suites if name not in SUITES]
    if unknown:
        parser.error(f"unknown suite(s): {', '.join(unknown)}")

    if args.list:
        for name, (description, modules) in SUITES.items():
            print(f"{name:<11} {description}  [{', '.join(modules)}]")
        return True

    if args.deps:
        return check_dependencies()

    if not check_dependencies():
        return False

    prepare_text_data()
    return run_suites(args.suites or list(SUITES), args.allow_network)


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
