"""Unit tests for gamepulse.signals.video_miner and gamepulse.sources.youtube."""

from __future__ import annotations

import asyncio

import pytest

from fakes import FakeSession, FakeYouTube, fixed_clock, make_video
from gamepulse.models.signals import no_gameplay_signal
from gamepulse.signals import video_miner
from gamepulse.signals.video_miner import VideoSignalMiner, compute_trending_score, gameplay_verdict
from gamepulse.sources.youtube import YouTubeClient

NO_GAMEPLAY = no_gameplay_signal()


def _item(video_id, title):
    return {"id": {"videoId": video_id}, "snippet": {"title": title}}


@pytest.mark.asyncio
async def test_failing_video_service_yields_neutral_signals():
    session = FakeSession({"/search": (500, None), "/videos": (500, None)})
    miner = VideoSignalMiner(YouTubeClient(session, api_key="k"), clock=fixed_clock())

    assert await miner.mine_gameplay_signal("Elden Ring") == NO_GAMEPLAY
    assert await miner.mine_trending_score("Elden Ring") is None
    assert await miner.find_trailer("Elden Ring") is None
    assert session.calls


@pytest.mark.asyncio
async def test_search_with_stats_keeps_relevant_videos_and_parses_stats():
    session = FakeSession({
        "/search": (200, {"items": [
            _item("a", "Elden Ring &amp; Nightreign gameplay"),
            _item("b", "Cooking with friends"),
            {"id": {"kind": "youtube#channel"}, "snippet": {"title": "Elden Ring channel"}},
        ]}),
        "/videos": (200, {"items": [{
            "id": "a",
            "snippet": {"title": "Elden Ring &amp; Nightreign gameplay", "publishedAt": "2026-10-18T10:00:00Z",
                        "channelTitle": "Chan"},
            "statistics": {},
        }]}),
    })
    client = YouTubeClient(session, api_key="secret")

    videos = await client.search_with_stats("Elden Ring gameplay", "Elden Ring", 8)

    assert videos == [{
        "video_id": "a",
        "title": "Elden Ring & Nightreign gameplay",
        "view_count": 0,
        "published_at": "2026-10-18T10:00:00Z",
        "channel_title": "Chan",
    }]
    search_params = session.calls[0][1]
    assert search_params["order"] == "viewCount"
    assert search_params["key"] == "secret"
    assert session.calls[1][1]["id"] == "a"

    # Served from the response cache the second time
    await client.search_with_stats("Elden Ring gameplay", "Elden Ring", 8)
    assert len(session.calls) == 2


@pytest.mark.asyncio
async def test_pre_release_footage_is_ignored():
    videos = [make_video(f"p{i}", "Elden Ring Preview - First Look", 50000, 2, f"C{i}") for i in range(6)]
    miner = VideoSignalMiner(FakeYouTube(default=videos), clock=fixed_clock())

    assert await miner.mine_gameplay_signal("Elden Ring") == NO_GAMEPLAY


@pytest.mark.asyncio
async def test_confirmed_titles_are_enough_and_duplicates_count_once():
    videos = [
        make_video("f1", "Elden Ring Full Game No Commentary", 12500, 1, "Solo"),
        make_video("f2", "ELDEN RING full game part 2", 12500, 4, "Solo"),
        make_video("old", "Elden Ring Full Game", 900000, 20, "Archive"),
    ]
    youtube = FakeYouTube(default=videos)
    miner = VideoSignalMiner(youtube, clock=fixed_clock())

    signal = await miner.mine_gameplay_signal("Elden Ring")

    assert signal == {"has_gameplay": True, "video_count": 2, "recent_views": 25000, "confidence": "medium"}
    assert len(youtube.queries) == 4


@pytest.mark.asyncio
async def test_many_confirmed_videos_across_channels_are_high_confidence():
    videos = [
        make_video(f"v{i}", f"Elden Ring walkthrough {'part 1' if i < 3 else 'boss'}", 15000, 3, f"C{i}")
        for i in range(5)
    ]
    miner = VideoSignalMiner(FakeYouTube(videos_by_query={"Elden Ring full gameplay": videos}), clock=fixed_clock())

    signal = await miner.mine_gameplay_signal("Elden Ring")

    assert signal["has_gameplay"] is True
    assert signal["confidence"] == "high"


def test_gameplay_verdict_thresholds():
    assert gameplay_verdict(5, 3, 50000, 0)
    assert not gameplay_verdict(4, 3, 90000, 1)
    assert gameplay_verdict(2, 1, 20000, 2)
    assert not gameplay_verdict(2, 1, 19999, 2)


def test_trending_score_formula():
    assert compute_trending_score(0, 0, 0) == 0
    assert compute_trending_score(1000, 2, 1) == 300 + 40 + 50
    # Volume is capped at 200
    assert compute_trending_score(1, 50, 0) == 200


@pytest.mark.asyncio
async def test_trending_score_uses_recent_videos_only():
    videos = [
        make_video("a", "Elden Ring review", 600, 3),
        make_video("b", "Elden Ring review", 400, 10),
        make_video("c", "Elden Ring review", 5000, 20),
    ]
    miner = VideoSignalMiner(FakeYouTube(default=videos), clock=fixed_clock())

    signal = await miner.mine_trending_score("Elden Ring")

    assert signal["trending_score"] == 390
    assert signal["total_views"] == 1000
    assert signal["video_count"] == 2
    assert signal["recent_video_count"] == 1
    assert signal["avg_views_per_video"] == 500
    assert signal["has_gameplay_videos"] is False
    assert [v["video_id"] for v in signal["videos"]] == ["a", "b"]


@pytest.mark.asyncio
async def test_trending_queries_use_the_current_year():
    youtube = FakeYouTube()
    miner = VideoSignalMiner(youtube, clock=fixed_clock())

    await miner.mine_trending_score("Elden Ring")

    assert youtube.queries == ["Elden Ring gameplay 2026", "Elden Ring review", "Elden Ring trailer"]


@pytest.mark.asyncio
async def test_find_trailer_returns_first_relevant_match():
    youtube = FakeYouTube(search_items={
        "Elden Ring official trailer": [_item("x", "Cooking show")],
        "Elden Ring gameplay trailer": [_item("t1", "ELDEN RING - Gameplay Trailer")],
        "Elden Ring game trailer": [_item("t2", "Elden Ring trailer")],
    })
    miner = VideoSignalMiner(youtube, clock=fixed_clock())

    assert await miner.find_trailer("Elden Ring") == "t1"
    assert youtube.queries == ["Elden Ring official trailer", "Elden Ring gameplay trailer"]


@pytest.mark.asyncio
async def test_find_video_falls_back_to_gameplay():
    youtube = FakeYouTube(search_items={"Elden Ring gameplay": [_item("g1", "Elden Ring gameplay no commentary")]})
    miner = VideoSignalMiner(youtube, clock=fixed_clock())

    assert await miner.find_video("Elden Ring") == {"video_id": "g1", "type": "gameplay"}
    assert await miner.find_video("Nothing Here") == {"video_id": None, "type": None}


class _StubMiner(VideoSignalMiner):
    def __init__(self):
        super().__init__(FakeYouTube(), clock=fixed_clock())
        self.mined = []

    async def mine_trending_score(self, game_name):
        self.mined.append(game_name)
        if game_name == "Quiet":
            return None
        return {"game_name": game_name, "trending_score": 100}


@pytest.mark.asyncio
async def test_batch_trending_pauses_between_batches(monkeypatch):
    pauses = []
    real_sleep = asyncio.sleep

    async def _fake_sleep(delay, *args, **kwargs):
        pauses.append(delay)
        await real_sleep(0)

    monkeypatch.setattr(video_miner.asyncio, "sleep", _fake_sleep)
    miner = _StubMiner()
    games = [{"id": i, "name": "Quiet" if i == 4 else f"Game {i}"} for i in range(7)]

    results = await miner.batch_trending(games, batch_size=3, pause=0.3)

    assert pauses == [0.3, 0.3]
    assert sorted(results) == [0, 1, 2, 3, 5, 6]
    assert sorted(miner.mined) == sorted(g["name"] for g in games)


@pytest.mark.asyncio
async def test_batch_trending_with_empty_batches_mines_nothing():
    miner = _StubMiner()

    assert await miner.batch_trending([{"id": 1, "name": "A"}], batch_size=0) == {}
    assert miner.mined == []

