"""
Concurrent judgments against a shared game.

Each worker thread records one judgment between the same hub game and
its own opponent. Without serialised read-modify-write, overlapping
workers would read the same hub rating and overwrite each other.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from steamrank.ladder.replay import rebuild_ratings

N_JUDGMENTS = 16
HUB = 1


@pytest.fixture
def ladder(seed_games):
    return seed_games(N_JUDGMENTS + 1)


def _run_concurrently(store, opponents):
    def judge(opponent):
        # Alternate winners so ratings move in both directions
        winner = HUB if opponent % 2 else opponent
        return store.apply_judgment(HUB, opponent, winner)

    with ThreadPoolExecutor(max_workers=8) as pool:
        return list(pool.map(judge, opponents))


def test_no_lost_updates_on_shared_game(store, ladder):
    opponents = ladder[1:]

    results = _run_concurrently(store, opponents)

    assert len(results) == N_JUDGMENTS
    entities = store.get_entities(ladder)
    assert entities[HUB].comparisons_played == N_JUDGMENTS
    for opponent in opponents:
        assert entities[opponent].comparisons_played == 1


def test_each_judgment_saw_the_previous_one(store, ladder):
    """Hub counters observed by the workers form one unbroken sequence."""
    results = _run_concurrently(store, ladder[1:])

    played_before = sorted(r.before_a.comparisons_played for r in results)
    assert played_before == list(range(N_JUDGMENTS))

    judgments = store.judgments()
    assert len(judgments) == N_JUDGMENTS
    for earlier, later in zip(judgments, judgments[1:]):
        assert later.rating_a_before == earlier.rating_a_after


def test_concurrent_ratings_match_serial_replay(store, ladder):
    _run_concurrently(store, ladder[1:])

    report = rebuild_ratings(store, dry_run=True)

    assert report.drift == {}
    total = sum(e.rating for e in store.list_all())
    assert total == pytest.approx(1500.0 * len(ladder))
