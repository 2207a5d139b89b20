"""
Unit tests for MatchingService.
Tests discovery ranking and filters, likes, passes and match listing.
"""
import pytest

from app.core.errors import Conflict, Forbidden, InvalidInput, NotFound
from app.models.match import Like, Pass
from app.models.user import Gender
from app.models.user_block import BlockReason, UserBlock
from app.repositories.match_repo import MatchRepository
from app.services.matching_service import MatchingService, similarity_score

TAIPEI_NEARBY = (25.0400, 121.5600)
KAOHSIUNG = (22.6273, 120.3014)


async def _block(db_session, blocker, blocked):
    db_session.add(UserBlock(blocker_id=blocker.id, blocked_id=blocked.id, reason=BlockReason.OTHER))
    await db_session.commit()


def _ids(response):
    return [card.id for card in response.users]


@pytest.mark.asyncio
class TestDiscover:
    """Test cases for the discovery feed."""

    async def test_discover_excludes_self(self, db_session, alice, bob):
        result = await MatchingService(db_session).discover(alice)

        assert _ids(result) == [bob.id]
        assert result.has_more is False
        assert result.users[0].distance_km is not None
        assert result.users[0].age == 29

    async def test_shared_interests_rank_first(self, db_session, make_user, interests):
        viewer = await make_user("viewer", location=TAIPEI_NEARBY, interests=interests[:3])
        close_stranger = await make_user("stranger", location=TAIPEI_NEARBY)
        far_friend = await make_user("friend", location=(25.0800, 121.5600), interests=interests[:2])

        result = await MatchingService(db_session).discover(viewer)

        assert _ids(result) == [far_friend.id, close_stranger.id]
        assert similarity_score(viewer, far_friend) == 2

    async def test_ties_broken_by_distance_then_id(self, db_session, make_user):
        viewer = await make_user("viewer", location=TAIPEI_NEARBY)
        farther = await make_user("farther", location=(25.1000, 121.5600))
        twin_one = await make_user("twinone", location=(25.0500, 121.5600))
        twin_two = await make_user("twintwo", location=(25.0500, 121.5600))

        result = await MatchingService(db_session).discover(viewer)

        assert _ids(result) == [twin_one.id, twin_two.id, farther.id]

    async def test_excludes_out_of_radius_and_missing_location(self, db_session, alice, bob, make_user):
        await make_user("faraway", location=KAOHSIUNG)
        await make_user("nowhere")

        result = await MatchingService(db_session).discover(alice)

        assert _ids(result) == [bob.id]

    async def test_viewer_without_location_sees_everyone(self, db_session, alice, bob, make_user):
        viewer = await make_user("drifter")
        nowhere = await make_user("nowhere")

        result = await MatchingService(db_session).discover(viewer)

        assert set(_ids(result)) == {alice.id, bob.id, nowhere.id}
        assert all(card.distance_km is None for card in result.users)

    async def test_respects_age_range(self, db_session, make_user):
        viewer = await make_user("viewer", location=TAIPEI_NEARBY, age_range_min=25, age_range_max=30)
        await make_user("young", age=24, location=TAIPEI_NEARBY)
        lower = await make_user("lower", age=25, location=TAIPEI_NEARBY)
        upper = await make_user("upper", age=30, location=TAIPEI_NEARBY)
        await make_user("older", age=31, location=TAIPEI_NEARBY)

        result = await MatchingService(db_session).discover(viewer)

        assert set(_ids(result)) == {lower.id, upper.id}

    async def test_excludes_inactive_liked_passed_blocked_and_matched(
        self, db_session, alice, bob, make_user
    ):
        liked = await make_user("liked", location=TAIPEI_NEARBY)
        passed = await make_user("passed", location=TAIPEI_NEARBY)
        blocker = await make_user("blocker", location=TAIPEI_NEARBY)
        await make_user("suspended", location=TAIPEI_NEARBY, is_active=False)
        db_session.add_all([
            Like(from_user_id=alice.id, to_user_id=liked.id),
            Pass(from_user_id=alice.id, to_user_id=passed.id),
        ])
        await db_session.commit()
        await _block(db_session, blocker, alice)
        await MatchRepository(db_session).create_for_pair(alice.id, bob.id)
        await db_session.commit()

        result = await MatchingService(db_session).discover(alice)

        assert _ids(result) == []

    async def test_liked_by_candidate_still_visible(self, db_session, alice, bob):
        db_session.add(Like(from_user_id=bob.id, to_user_id=alice.id))
        await db_session.commit()

        result = await MatchingService(db_session).discover(alice)

        assert _ids(result) == [bob.id]

    async def test_limit_and_has_more(self, db_session, make_user):
        viewer = await make_user("viewer", location=TAIPEI_NEARBY)
        for index in range(3):
            await make_user(f"candidate{index}", location=TAIPEI_NEARBY)

        result = await MatchingService(db_session).discover(viewer, limit=2)

        assert len(result.users) == 2
        assert result.has_more is True

    async def test_limit_above_maximum_is_clamped(self, db_session, alice, bob):
        result = await MatchingService(db_session).discover(alice, limit=10_000)

        assert _ids(result) == [bob.id]

    async def test_limit_below_one_rejected(self, db_session, alice):
        with pytest.raises(InvalidInput):
            await MatchingService(db_session).discover(alice, limit=0)

    async def test_hidden_age(self, db_session, alice, make_user):
        shy = await make_user("shy", location=TAIPEI_NEARBY, show_age=False)

        result = await MatchingService(db_session).discover(alice)

        card = next(card for card in result.users if card.id == shy.id)
        assert card.age is None


@pytest.mark.asyncio
class TestLike:
    """Test cases for likes and mutual matches."""

    async def test_one_sided_like(self, db_session, alice, bob, mock_presence_hub):
        result = await MatchingService(db_session).like(alice, bob.id)

        assert result.is_matched is False
        assert result.match_id == 0
        assert result.message == "Like sent"
        assert await MatchRepository(db_session).like_exists(alice.id, bob.id)
        mock_presence_hub.publish.assert_not_awaited()

    async def test_mutual_like_creates_match(self, db_session, alice, bob, published):
        service = MatchingService(db_session)
        await service.like(alice, bob.id)

        result = await service.like(bob, alice.id)

        assert result.is_matched is True
        assert result.message == "It's a match!"
        match = await MatchRepository(db_session).get_by_pair(alice.id, bob.id)
        assert match.id == result.match_id
        assert match.user_a_id < match.user_b_id

        events = published("match.created")
        assert len(events) == 1
        event, recipients = events[0]
        assert event.payload.match_id == match.id
        assert sorted(recipients) == sorted([alice.id, bob.id])

    async def test_duplicate_like(self, db_session, alice, bob):
        service = MatchingService(db_session)
        await service.like(alice, bob.id)

        with pytest.raises(Conflict):
            await service.like(alice, bob.id)

    async def test_like_after_match_is_duplicate(self, db_session, match, alice, bob):
        with pytest.raises(Conflict):
            await MatchingService(db_session).like(bob, alice.id)

    async def test_self_like(self, db_session, alice):
        with pytest.raises(InvalidInput):
            await MatchingService(db_session).like(alice, alice.id)

    async def test_unknown_target(self, db_session, alice):
        with pytest.raises(NotFound):
            await MatchingService(db_session).like(alice, 999)

    async def test_blocked_target(self, db_session, alice, bob):
        await _block(db_session, bob, alice)

        with pytest.raises(Forbidden):
            await MatchingService(db_session).like(alice, bob.id)

    async def test_inactive_target(self, db_session, alice, make_user):
        banned = await make_user("banned", gender=Gender.MALE, is_active=False)

        with pytest.raises(Forbidden):
            await MatchingService(db_session).like(alice, banned.id)

    async def test_suspended_viewer(self, db_session, bob, make_user):
        banned = await make_user("banned", is_active=False)

        with pytest.raises(Forbidden):
            await MatchingService(db_session).like(banned, bob.id)


@pytest.mark.asyncio
class TestPass:
    """Test cases for passes."""

    async def test_pass_is_idempotent(self, db_session, alice, bob):
        service = MatchingService(db_session)

        first = await service.pass_user(alice, bob.id)
        second = await service.pass_user(alice, bob.id)

        assert first.message == second.message == "Passed"
        assert await MatchRepository(db_session).pass_exists(alice.id, bob.id)

    async def test_passed_user_hidden_from_discovery(self, db_session, alice, bob):
        service = MatchingService(db_session)
        await service.pass_user(alice, bob.id)

        result = await service.discover(alice)

        assert _ids(result) == []

    async def test_pass_self(self, db_session, alice):
        with pytest.raises(InvalidInput):
            await MatchingService(db_session).pass_user(alice, alice.id)

    async def test_pass_unknown(self, db_session, alice):
        with pytest.raises(NotFound):
            await MatchingService(db_session).pass_user(alice, 12345)


@pytest.mark.asyncio
class TestListMatches:
    """Test cases for the match list."""

    async def test_lists_partner(self, db_session, match, alice, bob):
        matches = await MatchingService(db_session).list_matches(alice)

        assert [m.match_id for m in matches] == [match.id]
        assert matches[0].user.id == bob.id

    async def test_blocked_partner_hidden(self, db_session, match, alice, bob):
        await _block(db_session, alice, bob)

        assert await MatchingService(db_session).list_matches(bob) == []

    async def test_no_matches(self, db_session, alice):
        assert await MatchingService(db_session).list_matches(alice) == []
