import pytest

from pickem.utils.exceptions import UserNotFoundError


@pytest.fixture
async def league(seed):
    """Three players over two weeks; carol has not paid."""
    await seed.user("alice", "Alice")
    await seed.user("bob", "Bob")
    await seed.user("carol", "Carol")
    await seed.payment("alice", status="Paid")
    await seed.payment("bob", status="Paid")
    await seed.payment("carol", status="Pending")

    # Week 1: home wins 30-10 (cover by 20 -> 23 points)
    g1 = await seed.game(1, week=1, home_score=30, away_score=10)
    # Week 2: push
    g2 = await seed.game(2, week=2, home_score=17, away_score=17)
    # Week 2: not played yet
    g3 = await seed.game(3, week=2)

    await seed.pick("alice", g1, "Home", is_lock=True)   # 20 + 6
    await seed.pick("alice", g2, "Home")                 # 10
    await seed.pick("bob", g1, "Away")                   # 0
    await seed.pick("bob", g2, "Away")                   # 10
    await seed.pick("bob", g3, "Home")                   # unscored
    await seed.pick("carol", g1, "Home")                 # 23
    return g1, g2, g3


async def test_season_leaderboard_scores_unscored_picks_from_final_games(leaderboard_service, league):
    page = await leaderboard_service.get_season_leaderboard(2024, viewer_is_admin=True)

    by_user = {e.user_id: e for e in page.entries}
    assert by_user["alice"].total_points == 36
    assert by_user["alice"].lock_wins == 1
    assert by_user["bob"].total_points == 10
    assert by_user["bob"].total_picks == 3
    assert by_user["carol"].total_points == 23
    assert [e.user_id for e in page.entries] == ["alice", "carol", "bob"]
    assert [e.rank for e in page.entries] == [1, 2, 3]


async def test_stored_results_are_used_as_is(seed, leaderboard_service):
    await seed.user("dana", "Dana")
    game = await seed.game(10, week=1, home_score=0, away_score=50)
    await seed.pick("dana", game, "Home", result="win", points=99)

    page = await leaderboard_service.get_season_leaderboard(2024, viewer_is_admin=True)

    assert page.entries[0].total_points == 99


async def test_non_admin_only_sees_paid_users(leaderboard_service, league):
    page = await leaderboard_service.get_season_leaderboard(2024, viewer_is_admin=False)

    assert [e.user_id for e in page.entries] == ["alice", "bob"]
    assert [e.rank for e in page.entries] == [1, 2]
    assert page.total_players == 2


async def test_user_without_payment_shows_no_payment(seed, leaderboard_service):
    await seed.user("erin", "Erin")
    game = await seed.game(20, week=1, home_score=7, away_score=0)
    await seed.pick("erin", game, "Home")

    page = await leaderboard_service.get_season_leaderboard(2024, viewer_is_admin=True)

    assert page.entries[0].payment_status == "No Payment"


async def test_weekly_leaderboard_only_counts_that_week(leaderboard_service, league):
    page = await leaderboard_service.get_weekly_leaderboard(2024, 2, viewer_is_admin=True)

    by_user = {e.user_id: e for e in page.entries}
    assert set(by_user) == {"alice", "bob"}
    assert by_user["alice"].total_points == 10
    assert by_user["bob"].total_points == 10
    assert all(e.rank == 1 and e.is_tied for e in page.entries)
    assert page.week == 2


async def test_assigned_anonymous_picks_count_when_shown(seed, leaderboard_service, league):
    g1, _, _ = league
    await seed.user("frank", "Frank")
    await seed.anonymous_pick(g1, "Home", assigned_user_id="frank")
    await seed.anonymous_pick(g1, "Home", assigned_user_id="frank", show_on_leaderboard=False)
    await seed.anonymous_pick(g1, "Home")

    page = await leaderboard_service.get_season_leaderboard(2024, viewer_is_admin=True)

    frank = next(e for e in page.entries if e.user_id == "frank")
    assert frank.total_points == 23
    assert frank.total_picks == 1


async def test_authenticated_pick_shadows_anonymous_pick_for_same_week(seed, leaderboard_service):
    await seed.user("amy", "Amy")
    game = await seed.game(40, week=3, home_score=30, away_score=10)
    other_week = await seed.game(41, week=4, home_score=30, away_score=10)
    await seed.pick("amy", game, "Home")
    await seed.anonymous_pick(game, "Home", assigned_user_id="amy")
    await seed.anonymous_pick(other_week, "Home", assigned_user_id="amy")

    page = await leaderboard_service.get_season_leaderboard(2024, viewer_is_admin=True)

    amy = page.entries[0]
    assert amy.total_points == 46
    assert amy.total_picks == 2
    assert amy.wins == 2

    week_three = await leaderboard_service.get_weekly_leaderboard(2024, 3, viewer_is_admin=True)
    assert week_three.entries[0].total_points == 23
    assert week_three.entries[0].total_picks == 1

    breakdown = await leaderboard_service.get_user_breakdown("amy", 2024)
    assert [(w.week, w.picks_made) for w in breakdown.weeks] == [(3, 1), (4, 1)]


async def test_inactive_users_are_excluded(seed, leaderboard_service, league):
    g1, _, _ = league
    await seed.user("ghost", "Ghost", is_active=False)
    await seed.pick("ghost", g1, "Home")

    page = await leaderboard_service.get_season_leaderboard(2024, viewer_is_admin=True)

    assert "ghost" not in {e.user_id for e in page.entries}


async def test_pick_for_team_not_in_game_is_left_unscored(seed, leaderboard_service):
    await seed.user("hank", "Hank")
    game = await seed.game(30, week=1, home_score=21, away_score=3)
    await seed.pick("hank", game, "Somebody Else")

    page = await leaderboard_service.get_season_leaderboard(2024, viewer_is_admin=True)

    assert page.entries[0].total_points == 0
    assert page.entries[0].total_picks == 1


async def test_pagination_uses_configured_page_size(seed, leaderboard_service, config_service):
    await config_service.set('leaderboard.page_size', 2, user_id=1)
    for i in range(5):
        await seed.user(f"p{i}", f"Player {i}")
        game = await seed.game(100 + i, week=1, home_score=i, away_score=0)
        await seed.pick(f"p{i}", game, "Home")

    page = await leaderboard_service.get_season_leaderboard(2024, viewer_is_admin=True, page=3)

    assert page.total_pages == 3
    assert len(page.entries) == 1
    assert page.total_players == 5


async def test_results_are_cached_until_invalidated(seed, leaderboard_service, league):
    first = await leaderboard_service.get_season_leaderboard(2024, viewer_is_admin=True)

    await seed.user("ivy", "Ivy")
    game = await seed.game(40, week=3, home_score=3, away_score=0)
    await seed.pick("ivy", game, "Home")

    cached = await leaderboard_service.get_season_leaderboard(2024, viewer_is_admin=True)
    assert cached is first

    refreshed = await leaderboard_service.get_season_leaderboard(2024, viewer_is_admin=True, force_refresh=True)
    assert refreshed.total_players == 4

    await leaderboard_service.invalidate_cache()
    again = await leaderboard_service.get_season_leaderboard(2024, viewer_is_admin=True)
    assert again is not first
    assert again.total_players == 4


async def test_empty_season(leaderboard_service):
    page = await leaderboard_service.get_season_leaderboard(1999)
    assert page.entries == []
    assert page.total_pages == 1


async def test_user_breakdown(leaderboard_service, league):
    breakdown = await leaderboard_service.get_user_breakdown("alice", 2024)

    assert breakdown.display_name == "Alice"
    assert [w.week for w in breakdown.weeks] == [1, 2]
    assert breakdown.total_points == 36
    assert breakdown.best_week.week == 1
    assert breakdown.worst_week.week == 2
    assert breakdown.average_points == pytest.approx(18.0)
    assert breakdown.trend is None


async def test_user_breakdown_with_no_picks_is_empty(seed, leaderboard_service):
    await seed.user("jo", "Jo")
    breakdown = await leaderboard_service.get_user_breakdown("jo", 2024)
    assert breakdown.weeks == ()
    assert breakdown.average_points == 0


async def test_user_breakdown_unknown_user(leaderboard_service):
    with pytest.raises(UserNotFoundError):
        await leaderboard_service.get_user_breakdown("missing", 2024)


async def test_find_user_by_id_email_alternate_email_and_name(seed, leaderboard_service):
    await seed.user("kim", "Kim Lee", email="kim@example.com")
    await seed.email("kim", "kimberly@work.com")

    assert (await leaderboard_service.find_user("kim")).id == "kim"
    assert (await leaderboard_service.find_user("KIM@example.com")).id == "kim"
    assert (await leaderboard_service.find_user("kimberly@work.com")).id == "kim"
    assert (await leaderboard_service.find_user("kim lee")).id == "kim"
    assert await leaderboard_service.find_user("nobody") is None
