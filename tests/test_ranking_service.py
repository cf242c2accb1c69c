"""Unit tests for gamepulse.ranking.service."""

from __future__ import annotations

import random
from datetime import date

import pytest

from fakes import NOW, FakeMiner, FakeRawg, fixed_clock, iso_days_ago, make_game, trending_signal
from gamepulse.core.database import Database
from gamepulse.models.store import ReleaseFlag
from gamepulse.ranking.service import RankingService
from gamepulse.ranking.shuffle import date_seed, seeded_shuffle
from gamepulse.utils.dates import days_since_epoch


@pytest.fixture
def db(tmp_path):
    return Database(str(tmp_path / "gamepulse.db"))


def _cache_signal(db, game_id, score):
    db.upsert_video_signal(game_id, f"Game {game_id}", total_views=1000, video_count=2,
                           trending_score=score, has_gameplay_videos=False)


@pytest.mark.asyncio
async def test_trending_keeps_released_games_and_puts_buzz_first(db):
    rawg = FakeRawg(trending=[
        make_game(1, released=iso_days_ago(5)),
        make_game(2, released=None, tba=True),
        make_game(3, released="2027-03-01"),
        make_game(4, released=iso_days_ago(20), ratings_count=3),
        make_game(5, released=iso_days_ago(8)),
    ])
    db.upsert_override(2, "Game 2", is_released=ReleaseFlag.RELEASED)
    db.upsert_override(5, "Game 5", is_released=ReleaseFlag.NOT_RELEASED)
    _cache_signal(db, 4, 900)
    service = RankingService(rawg, db, clock=fixed_clock())

    response = await service.get_trending_games(page=1, page_size=2)
    again = await service.get_trending_games(page=1, page_size=2)

    ids = [g["id"] for g in response["results"]]
    assert len(ids) == 2
    assert ids[0] == 4
    assert set(ids) <= {1, 2, 4}
    assert [g["id"] for g in again["results"]] == ids
    assert rawg.calls[0] == ("trending", 1, 2)


@pytest.mark.asyncio
async def test_empty_pages_are_empty_and_skip_the_catalog(db):
    rawg = FakeRawg(trending=[make_game(1, released=iso_days_ago(5))])
    service = RankingService(rawg, db, clock=fixed_clock())
    empty = {"count": 0, "next": None, "previous": None, "results": []}

    assert await service.get_trending_games(page_size=0) == empty
    assert await service.get_upcoming_games(page_size=-1) == empty
    assert rawg.calls == []



@pytest.mark.asyncio
async def test_upcoming_filters_and_rotates_deterministically(db):
    soon_a = make_game(10, released="2026-11-01")
    soon_b = make_game(11, released="2026-10-25")
    later_popular = make_game(12, released="2026-12-20", ratings_count=500)
    later_quiet = make_game(13, released="2026-12-10", ratings_count=100)
    rawg = FakeRawg(upcoming=[
        soon_a, soon_b, later_popular, later_quiet,
        make_game(14, released="2027-02-01"),
        make_game(15, released="2026-11-15", tba=True),
        make_game(16, released="2026-11-20", background_image=None),
        make_game(17, released="2026-10-01"),
        make_game(10, released="2026-11-01"),
    ])
    service = RankingService(rawg, db, clock=fixed_clock())

    response = await service.get_upcoming_games(page=1, page_size=10)

    today_ist = date(2026, 10, 19)
    seed = 2026 * 1000 + days_since_epoch(today_ist) // 3
    expected = seeded_shuffle([soon_b, soon_a, later_popular, later_quiet], seed)
    assert [g["id"] for g in response["results"]] == [g["id"] for g in expected]


@pytest.mark.asyncio
async def test_todays_pick_is_the_same_for_every_caller(db):
    recent = [make_game(i, released=iso_days_ago(3 + i)) for i in range(1, 9)]
    for game in recent:
        _cache_signal(db, game["id"], 100 * game["id"])
    miner = FakeMiner()

    first = await RankingService(FakeRawg(recent=recent), db, miner, clock=fixed_clock()).get_todays_pick_game()
    second = await RankingService(FakeRawg(recent=list(reversed(recent))), db, miner, clock=fixed_clock()).get_todays_pick_game()

    top_five = [8, 7, 6, 5, 4]
    assert first["id"] == top_five[date_seed("2026-10-19") % 5]
    assert second["id"] == first["id"]
    assert miner.trending_calls == []


@pytest.mark.asyncio
async def test_todays_pick_mines_missing_signals_for_leading_candidates(db):
    recent = [make_game(i, released=iso_days_ago(2)) for i in range(1, 13)]
    miner = FakeMiner(trending={g["name"]: trending_signal(g["name"], 10 * g["id"]) for g in recent})
    service = RankingService(FakeRawg(recent=recent), db, miner, clock=fixed_clock())

    pick = await service.get_todays_pick_game()

    assert len(miner.trending_calls) == 10
    assert set(db.get_video_signals(range(1, 13))) == set(range(1, 11))
    assert pick["id"] in {6, 7, 8, 9, 10}


@pytest.mark.asyncio
async def test_todays_pick_prefers_priority_publishers(db):
    recent = [
        make_game(1, released=iso_days_ago(2), publishers=[{"name": "Small Studio"}]),
        make_game(2, released=iso_days_ago(2), publishers=[{"name": "Nintendo"}]),
    ]
    for game in recent:
        _cache_signal(db, game["id"], 0)
    db.upsert_priority_publisher("nintendo", 100)
    service = RankingService(FakeRawg(recent=recent), db, clock=fixed_clock())

    pick = await service.get_todays_pick_game()

    assert pick["id"] == [2, 1][date_seed("2026-10-19") % 2]


@pytest.mark.asyncio
async def test_todays_pick_falls_back_to_best_of_year(db):
    rawg = FakeRawg(year=[
        make_game(20, released="2026-03-01", ratings_count=5),
        make_game(21, released="2026-02-01", ratings_count=200),
    ])
    service = RankingService(rawg, db, clock=fixed_clock())

    pick = await service.get_todays_pick_game()

    assert pick["id"] == 21
    assert ("year", 2026, NOW.date()) in rawg.calls


@pytest.mark.asyncio
async def test_todays_pick_without_candidates(db):
    service = RankingService(FakeRawg(), db, clock=fixed_clock())

    assert await service.get_todays_pick_game() is None


@pytest.mark.asyncio
async def test_all_time_greats_feature_one_legend(db):
    legendary = [make_game(i, released="2011-11-11", metacritic=97) for i in (1, 2)]
    elite = [make_game(i, released="2015-05-19", metacritic=92) for i in range(10, 17)]
    service = RankingService(FakeRawg(legendary=legendary, elite=elite), db, clock=fixed_clock())

    response = await service.get_all_time_greats(rng=random.Random(3))

    ids = [g["id"] for g in response["results"]]
    assert len(ids) == 6
    assert ids[0] in {1, 2}
    assert set(ids[1:]) <= set(range(10, 17))


@pytest.mark.asyncio
async def test_all_time_greats_without_legends(db):
    elite = [make_game(i, released="2015-05-19") for i in range(10, 17)]
    service = RankingService(FakeRawg(elite=elite), db, clock=fixed_clock())

    response = await service.get_all_time_greats(rng=random.Random(3))

    assert len(response["results"]) == 6
    assert response["count"] == 6


@pytest.mark.asyncio
async def test_is_game_released_uses_video_heuristic(db):
    miner = FakeMiner(gameplay={"has_gameplay": True, "video_count": 6, "recent_views": 60000, "confidence": "medium"})
    service = RankingService(FakeRawg(), db, miner, clock=fixed_clock())

    assert await service.is_game_released(make_game(30, "Silksong", released=None, tba=True)) is True
    assert db.get_override(30)["detected_via"] == "video-heuristic"
