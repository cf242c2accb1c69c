"""Unit tests for gamepulse.jobs.update_trending."""

from __future__ import annotations

import pytest

from fakes import FakeMiner, games_response, make_game, trending_signal
from gamepulse.core.database import Database
from gamepulse.jobs.update_trending import TrendingCacheRefresher


class _FakeRanking:
    def __init__(self, trending, upcoming, error=None):
        self.trending = trending
        self.upcoming = upcoming
        self.error = error
        self.calls = []

    async def get_trending_games(self, page=1, page_size=12):
        self.calls.append(("trending", page, page_size))
        if self.error:
            raise self.error
        return games_response(self.trending)

    async def get_upcoming_games(self, page=1, page_size=4):
        self.calls.append(("upcoming", page, page_size))
        return games_response(self.upcoming)


class _RecordingMiner(FakeMiner):
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.batches = []

    async def batch_trending(self, games, batch_size=3, pause=0.3):
        self.batches.append(([g["id"] for g in games], batch_size, pause))
        return await super().batch_trending(games, batch_size, pause)


@pytest.fixture
def db(tmp_path):
    return Database(str(tmp_path / "gamepulse.db"))


@pytest.mark.asyncio
async def test_refresh_mines_each_game_once_and_stores_signals(db):
    ranking = _FakeRanking(
        trending=[make_game(1, "Alpha"), make_game(2, "Beta"), make_game(3, "Gamma")],
        upcoming=[make_game(3, "Gamma"), make_game(4, "Delta")],
    )
    miner = _RecordingMiner(trending={
        "Alpha": trending_signal("Alpha", 410, views=5000, count=4, gameplay=True),
        "Gamma": trending_signal("Gamma", 250),
    })
    refresher = TrendingCacheRefresher(ranking, miner, db, batch_size=2, batch_pause=0.1)

    summary = await refresher.run()

    assert summary["success"] is True
    assert summary["checked"] == 4
    assert summary["updated"] == 2
    assert {g["id"]: g["score"] for g in summary["games"]} == {1: 410, 3: 250}
    assert miner.batches == [([1, 2, 3, 4], 2, 0.1)]
    assert ("trending", 1, 20) in ranking.calls
    assert ("upcoming", 1, 10) in ranking.calls

    alpha = db.get_video_signal(1)
    assert alpha["trending_score"] == 410
    assert alpha["avg_views_per_video"] == 1250
    assert alpha["has_gameplay_videos"] is True
    assert db.get_video_signal(2) is None


@pytest.mark.asyncio
async def test_refresh_reports_failure(db):
    ranking = _FakeRanking([], [], error=RuntimeError("catalog down"))
    refresher = TrendingCacheRefresher(ranking, FakeMiner(), db)

    summary = await refresher.run()

    assert summary == {"success": False, "error": "catalog down"}


@pytest.mark.asyncio
async def test_refresh_with_nothing_to_check(db):
    refresher = TrendingCacheRefresher(_FakeRanking([], []), FakeMiner(), db)

    summary = await refresher.run()

    assert summary == {"success": True, "checked": 0, "updated": 0, "games": []}
