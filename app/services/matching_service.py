"""
Matching service containing business logic for discovery and swipes.
Handles the discovery feed, likes, passes and mutual-match promotion.
"""
import logging
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.errors import Conflict, Forbidden, InvalidInput, NotFound
from app.core.websocket import presence_hub
from app.models.user import User
from app.repositories.block_repo import BlockRepository
from app.repositories.match_repo import MatchRepository
from app.repositories.user_repo import UserRepository
from app.schemas.events import MatchCreatedEvent, MatchPayload
from app.schemas.match import DiscoverResponse, LikeResponse, MatchResponse, PassResponse
from app.schemas.user import UserCard
from app.utils.datetime_utils import ensure_utc, utc_today
from app.utils.helpers import distance_between
from app.utils.validators import validate_page_limit

logger = logging.getLogger(__name__)


def similarity_score(viewer: User, candidate: User) -> int:
    """Number of interests the two users share."""
    return len(viewer.interest_ids & candidate.interest_ids)


class MatchingService:
    """Service for discovery and swipe operations."""

    def __init__(self, db: AsyncSession):
        """
        Initialize matching service.

        Args:
            db: Database session
        """
        self.db = db
        self.user_repo = UserRepository(db)
        self.match_repo = MatchRepository(db)
        self.block_repo = BlockRepository(db)
        self.hub = presence_hub

    async def discover(
        self,
        viewer: User,
        limit: Optional[int] = None,
        today: Optional[date] = None
    ) -> DiscoverResponse:
        """
        Build the viewer's discovery page.

        Candidates are filtered in SQL (activity, age range, likes, passes,
        blocks, existing matches, location box), then by exact great-circle
        distance, and ordered by shared interests descending, distance
        ascending, then user ID ascending.

        Args:
            viewer: User requesting the feed
            limit: Page size; values above the maximum are clamped
            today: Reference date for ages (defaults to today, UTC)

        Returns:
            Ordered user cards and whether more candidates exist

        Raises:
            InvalidInput: If limit is below 1
        """
        limit = validate_page_limit(
            limit,
            default=settings.discover_default_limit,
            maximum=settings.discover_max_limit,
            clamp=True,
        )
        today = today or utc_today()

        candidates = await self.match_repo.discovery_candidates(
            viewer,
            today,
            box=MatchRepository.box_for(viewer),
        )

        ranked: List[Tuple[int, float, int, User, Optional[float]]] = []
        for candidate in candidates:
            distance = distance_between(viewer, candidate)
            if viewer.has_location:
                if distance is None or distance > viewer.max_distance_km:
                    continue
            score = similarity_score(viewer, candidate)
            ranked.append((-score, distance or 0.0, candidate.id, candidate, distance))

        ranked.sort(key=lambda entry: entry[:3])
        page = ranked[:limit]

        return DiscoverResponse(
            users=[
                UserCard.from_user(candidate, distance_km=distance, today=today)
                for _, _, _, candidate, distance in page
            ],
            has_more=len(ranked) > limit,
        )

    async def _check_target(self, viewer: User, target_user_id: int) -> None:
        if not viewer.is_active:
            raise Forbidden("Your account is suspended")
        if target_user_id == viewer.id:
            raise InvalidInput("You cannot swipe on yourself")
        if not await self.user_repo.exists(target_user_id):
            raise NotFound("User not found")

    async def like(self, viewer: User, target_user_id: int) -> LikeResponse:
        """
        Like another user, creating a match when the like is mutual.

        Both user rows are locked (ascending ID order) before the reverse
        like is inspected, so two concurrent mutual likes produce exactly
        one match.

        Args:
            viewer: User sending the like
            target_user_id: User being liked

        Returns:
            LikeResponse with ``is_matched`` true only if this call created
            the match

        Raises:
            InvalidInput: Self-like
            NotFound: Unknown target
            Forbidden: Blocked pair, inactive target or suspended viewer
            Conflict: The like already exists

        Example:
            ```python
            result = await matching_service.like(alice, bob.id)
            if result.is_matched:
                print(f"New match {result.match_id}")
            ```
        """
        await self._check_target(viewer, target_user_id)

        locked = {user.id: user for user in await self.user_repo.lock_pair(viewer.id, target_user_id)}
        target = locked.get(target_user_id)
        if target is None:
            raise NotFound("User not found")
        if not target.is_active:
            raise Forbidden("This user is not available")
        if await self.block_repo.is_blocked_between(viewer.id, target_user_id):
            raise Forbidden("You cannot interact with this user")

        if await self.match_repo.like_exists(viewer.id, target_user_id):
            raise Conflict("You have already liked this user")

        try:
            await self.match_repo.add_like(viewer.id, target_user_id)
        except IntegrityError:
            raise Conflict("You have already liked this user")

        match = None
        if await self.match_repo.like_exists(target_user_id, viewer.id):
            if await self.match_repo.get_by_pair(viewer.id, target_user_id) is None:
                match = await self.match_repo.create_for_pair(viewer.id, target_user_id)

        if match is not None:
            await self.hub.publish(
                MatchCreatedEvent(
                    payload=MatchPayload(
                        match_id=match.id,
                        user_a_id=match.user_a_id,
                        user_b_id=match.user_b_id,
                        created_at=ensure_utc(match.created_at),
                    )
                ),
                [match.user_a_id, match.user_b_id]
            )

        await self.db.commit()

        if match is not None:
            logger.info("Match %s created between %s and %s", match.id, match.user_a_id, match.user_b_id)
            return LikeResponse(match_id=match.id, is_matched=True, message="It's a match!")

        logger.info("User %s liked user %s", viewer.id, target_user_id)
        return LikeResponse(match_id=0, is_matched=False, message="Like sent")

    async def pass_user(self, viewer: User, target_user_id: int) -> PassResponse:
        """
        Permanently hide a user from the viewer's discovery feed.

        Repeating a pass is a successful no-op.
        """
        await self._check_target(viewer, target_user_id)

        if not await self.match_repo.pass_exists(viewer.id, target_user_id):
            try:
                await self.match_repo.add_pass(viewer.id, target_user_id)
            except IntegrityError:
                # Concurrent duplicate pass; the row exists either way
                await self.db.rollback()
                return PassResponse(message="Passed")
            await self.db.commit()

        return PassResponse(message="Passed")

    async def list_matches(self, user: User, today: Optional[date] = None) -> List[MatchResponse]:
        """
        Current matches of the user, newest first.

        Matches with an inactive partner or a block in either direction
        are omitted.
        """
        matches = await self.match_repo.list_for_user(user.id)
        if not matches:
            return []

        blocked = await self.block_repo.related_user_ids(user.id)
        partner_ids = [m.partner_of(user.id) for m in matches]
        partners = {p.id: p for p in await self.user_repo.get_many(partner_ids)}

        result = []
        for match in matches:
            partner = partners.get(match.partner_of(user.id))
            if partner is None or not partner.is_active or partner.id in blocked:
                continue
            result.append(
                MatchResponse(
                    match_id=match.id,
                    user=UserCard.from_user(partner, distance_km=distance_between(user, partner), today=today),
                    created_at=ensure_utc(match.created_at),
                )
            )
        return result
