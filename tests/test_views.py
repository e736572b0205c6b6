import asyncio

import pytest

from pickem.constants import LeaderboardConstants
from pickem.data_models.leaderboard import LeaderboardPage
from pickem.views.leaderboard import LeaderboardView


def make_page(page, total_pages=3):
    return LeaderboardPage(
        entries=[],
        current_page=page,
        total_pages=total_pages,
        total_players=0,
        season=2024,
        leaderboard_type=LeaderboardConstants.SEASON,
        viewer_is_admin=False,
    )


class SlowLeaderboardService:
    """Returns each page only when its gate is opened."""

    def __init__(self):
        self.gates = {}

    async def get_season_leaderboard(self, season, viewer_is_admin=False, page=1, force_refresh=False):
        gate = self.gates.setdefault(page, asyncio.Event())
        await gate.wait()
        if page == 99:
            raise RuntimeError("backend down")
        return make_page(page)


async def test_slow_response_does_not_overwrite_newer_page():
    service = SlowLeaderboardService()
    view = LeaderboardView(service, make_page(1))

    slow = asyncio.create_task(view.load(2))
    await asyncio.sleep(0)
    fast = asyncio.create_task(view.load(3))
    await asyncio.sleep(0)

    service.gates[3].set()
    assert (await fast).current_page == 3

    service.gates[2].set()
    assert await slow is None

    assert view.current_page == 3
    assert view.tracker.state.data.current_page == 3
    assert len(view.tracker.superseded) == 1


async def test_error_from_newest_request_propagates():
    service = SlowLeaderboardService()
    view = LeaderboardView(service, make_page(1))
    service.gates[99] = asyncio.Event()
    service.gates[99].set()

    with pytest.raises(RuntimeError):
        await view.load(99)
    assert view.current_page == 1


async def test_buttons_follow_page_position():
    view = LeaderboardView(SlowLeaderboardService(), make_page(1, total_pages=1))
    prev_button, indicator, next_button, refresh = view.children

    assert prev_button.disabled
    assert next_button.disabled
    assert indicator.label == "Page 1/1"
    assert not refresh.disabled
