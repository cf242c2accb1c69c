"""Unit tests for gamepulse.ranking.release."""

from __future__ import annotations

from datetime import date

import pytest

from fakes import NOW, FakeMiner, FakeYouTube, fixed_clock, iso_days_ago, make_game, make_video
from gamepulse.core.database import Database
from gamepulse.models.store import ReleaseFlag
from gamepulse.ranking.release import ReleaseResolver, resolve_released
from gamepulse.signals.video_miner import VideoSignalMiner

TODAY = NOW.date()


def _override(flag=ReleaseFlag.UNSET, release_date=None):
    return {
        "game_id": 1,
        "game_name": "Game",
        "is_released": flag,
        "release_date": release_date,
        "is_trending": False,
        "trending_score": 0,
        "detected_via": None,
        "notes": None,
        "created_at": "",
        "updated_at": "",
    }


@pytest.fixture
def db(tmp_path):
    return Database(str(tmp_path / "gamepulse.db"))


def test_not_released_override_beats_a_past_catalog_date():
    game = make_game(1, released=iso_days_ago(100), ratings_count=500)

    decision = resolve_released(game, _override(ReleaseFlag.NOT_RELEASED), TODAY)

    assert decision == {"status": ReleaseFlag.NOT_RELEASED, "rule": "override-not-released"}


def test_released_override_beats_tba():
    game = make_game(1, released=None, tba=True)

    assert resolve_released(game, _override(ReleaseFlag.RELEASED), TODAY)["rule"] == "override-released"


def test_past_override_date_releases_a_tba_game():
    game = make_game(1, released=None, tba=True)
    override = _override(release_date=iso_days_ago(1))

    assert resolve_released(game, override, TODAY)["rule"] == "override-release-date"


def test_future_override_date_falls_through_to_catalog():
    game = make_game(1, released=iso_days_ago(1), ratings_count=20)
    override = _override(release_date="2027-03-01")

    decision = resolve_released(game, override, TODAY, min_ratings_count=10)

    assert decision == {"status": ReleaseFlag.RELEASED, "rule": "catalog-released"}


@pytest.mark.parametrize(
    "fields, rule",
    [
        ({"tba": True, "released": iso_days_ago(5)}, "catalog-tba"),
        ({"released": None}, "catalog-no-date"),
        ({"released": "not a date"}, "catalog-no-date"),
        ({"released": "2026-12-24"}, "catalog-future"),
        ({"released": TODAY.isoformat()}, "catalog-released"),
    ],
)
def test_catalog_rules(fields, rule):
    assert resolve_released(make_game(1, **fields), None, TODAY)["rule"] == rule


def test_ratings_floor_only_applies_when_requested():
    game = make_game(1, released=iso_days_ago(3), ratings_count=3)

    assert resolve_released(game, None, TODAY)["status"] is ReleaseFlag.RELEASED
    assert resolve_released(game, None, TODAY, 10)["rule"] == "catalog-below-ratings-floor"


def test_every_combination_gets_exactly_one_verdict():
    flags = list(ReleaseFlag)
    override_dates = [None, iso_days_ago(1), "2027-01-01"]
    catalog_dates = [None, iso_days_ago(1), "2027-01-01"]
    for flag in flags + [None]:
        for override_date in override_dates:
            for tba in (True, False):
                for released in catalog_dates:
                    override = None if flag is None else _override(flag, override_date)
                    decision = resolve_released(make_game(1, tba=tba, released=released), override, date(2026, 10, 19))
                    assert decision["status"] in (ReleaseFlag.RELEASED, ReleaseFlag.NOT_RELEASED)
                    assert decision["rule"]


@pytest.mark.asyncio
async def test_single_game_check_skips_ratings_floor_but_batch_does_not(db):
    game = make_game(1, released=iso_days_ago(3), ratings_count=3)
    resolver = ReleaseResolver(db, clock=fixed_clock())

    assert await resolver.is_game_released(game) is True
    assert await resolver.filter_released_games([game]) == []
    assert await resolver.filter_released_games([game], min_ratings_count=0) == [game]


@pytest.mark.asyncio
async def test_filter_keeps_order_and_honours_overrides(db):
    games = [
        make_game(1, released=iso_days_ago(5)),
        make_game(2, released=None, tba=True),
        make_game(3, released=iso_days_ago(40)),
        make_game(4, released="2027-02-01"),
    ]
    db.upsert_override(2, "Game 2", is_released=ReleaseFlag.RELEASED)
    db.upsert_override(3, "Game 3", is_released=ReleaseFlag.NOT_RELEASED)
    miner = FakeMiner(gameplay={"has_gameplay": True, "video_count": 9, "recent_views": 1, "confidence": "high"})
    resolver = ReleaseResolver(db, miner=miner, clock=fixed_clock())

    released = await resolver.filter_released_games(games)

    assert [g["id"] for g in released] == [1, 2]
    assert miner.gameplay_calls == []


@pytest.mark.asyncio
async def test_video_heuristic_releases_tba_game_and_records_it(db):
    """6 relevant videos from 4 channels with 60,000 views in the last 14 days mark a TBA game as out."""
    name = "Hollow Knight Silksong"
    videos = [
        make_video(f"v{i}", f"{name} gameplay walkthrough", 10000, days_old=2 + i, channel=f"Channel {i % 4}")
        for i in range(6)
    ]
    youtube = FakeYouTube(videos_by_query={f"{name} full gameplay": videos})
    miner = VideoSignalMiner(youtube, clock=fixed_clock())
    resolver = ReleaseResolver(db, miner=miner, clock=fixed_clock())
    game = make_game(42, name, released=None, tba=True)

    assert await resolver.is_game_released(game) is True

    override = db.get_override(42)
    assert override["is_released"] is ReleaseFlag.RELEASED
    assert override["detected_via"] == "video-heuristic"

    # The stored override now answers without searching again
    query_count = len(youtube.queries)
    assert await resolver.is_game_released(game) is True
    assert len(youtube.queries) == query_count


@pytest.mark.asyncio
async def test_heuristic_without_footage_keeps_game_unreleased(db):
    miner = FakeMiner()
    resolver = ReleaseResolver(db, miner=miner, clock=fixed_clock())

    assert await resolver.is_game_released(make_game(5, "Future Game", released="2027-05-01")) is False
    assert miner.gameplay_calls == ["Future Game"]
    assert db.get_override(5) is None


@pytest.mark.asyncio
async def test_explicit_not_released_override_skips_heuristic(db):
    db.upsert_override(6, "Held Back", is_released=ReleaseFlag.NOT_RELEASED)
    miner = FakeMiner(gameplay={"has_gameplay": True, "video_count": 9, "recent_views": 1, "confidence": "high"})
    resolver = ReleaseResolver(db, miner=miner, clock=fixed_clock())

    assert await resolver.is_game_released(make_game(6, "Held Back", tba=True, released=None)) is False
    assert miner.gameplay_calls == []


class _BrokenStore:
    def get_override(self, game_id):
        raise RuntimeError("store is down")

    def get_overrides(self, game_ids):
        raise RuntimeError("store is down")


@pytest.mark.asyncio
async def test_store_failure_is_treated_as_no_override():
    resolver = ReleaseResolver(_BrokenStore(), clock=fixed_clock())
    game = make_game(1, released=iso_days_ago(2))

    assert await resolver.is_game_released(game) is True
    assert await resolver.filter_released_games([game]) == [game]


class _ExplodingMiner(FakeMiner):
    async def mine_gameplay_signal(self, game_name):
        raise RuntimeError("quota exceeded")


@pytest.mark.asyncio
async def test_miner_failure_keeps_catalog_verdict(db):
    resolver = ReleaseResolver(db, miner=_ExplodingMiner(), clock=fixed_clock())

    assert await resolver.is_game_released(make_game(7, "Unknown", tba=True, released=None)) is False
    assert db.get_override(7) is None
