"""
Match repository for database operations.
Handles likes, passes, matches and the discovery candidate query.
"""
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import or_, select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.match import Like, Match, Pass
from app.models.user import User
from app.models.user_block import UserBlock
from app.repositories.base import BaseRepository
from app.utils.datetime_utils import years_before
from app.utils.helpers import bounding_box, canonical_pair


class MatchRepository(BaseRepository[Match]):
    """Repository for likes, passes and matches."""

    def __init__(self, db: AsyncSession):
        """Initialize match repository."""
        super().__init__(Match, db)

    # ------------------------------------------------------------------
    # Likes and passes
    # ------------------------------------------------------------------

    async def like_exists(self, from_user_id: int, to_user_id: int) -> bool:
        result = await self.db.execute(
            select(func.count()).select_from(Like).where(
                Like.from_user_id == from_user_id,
                Like.to_user_id == to_user_id,
            )
        )
        return result.scalar() > 0

    async def add_like(self, from_user_id: int, to_user_id: int) -> Like:
        """
        Record a directed like.

        Args:
            from_user_id: Liker
            to_user_id: Liked user

        Returns:
            The new Like row
        """
        like = Like(from_user_id=from_user_id, to_user_id=to_user_id)
        self.db.add(like)
        await self.db.flush()
        return like

    async def pass_exists(self, from_user_id: int, to_user_id: int) -> bool:
        result = await self.db.execute(
            select(func.count()).select_from(Pass).where(
                Pass.from_user_id == from_user_id,
                Pass.to_user_id == to_user_id,
            )
        )
        return result.scalar() > 0

    async def add_pass(self, from_user_id: int, to_user_id: int) -> Pass:
        pass_ = Pass(from_user_id=from_user_id, to_user_id=to_user_id)
        self.db.add(pass_)
        await self.db.flush()
        return pass_

    # ------------------------------------------------------------------
    # Matches
    # ------------------------------------------------------------------

    async def get_by_pair(self, user_x: int, user_y: int) -> Optional[Match]:
        """
        Get the match between two users regardless of argument order.

        Example:
            ```python
            match = await match_repo.get_by_pair(bob.id, alice.id)
            ```
        """
        user_a, user_b = canonical_pair(user_x, user_y)
        result = await self.db.execute(
            select(Match).where(Match.user_a_id == user_a, Match.user_b_id == user_b)
        )
        return result.scalar_one_or_none()

    async def create_for_pair(self, user_x: int, user_y: int) -> Match:
        """Create a match with canonical ordering (user_a_id < user_b_id)."""
        user_a, user_b = canonical_pair(user_x, user_y)
        return await self.create(user_a_id=user_a, user_b_id=user_b)

    async def list_for_user(self, user_id: int) -> List[Match]:
        """All matches of a user, newest first."""
        result = await self.db.execute(
            select(Match)
            .where(or_(Match.user_a_id == user_id, Match.user_b_id == user_id))
            .order_by(Match.created_at.desc(), Match.id.desc())
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    async def discovery_candidates(
        self,
        viewer: User,
        today: date,
        box: Optional[Tuple[float, float, float, float]] = None
    ) -> List[User]:
        """
        Users eligible to appear in the viewer's discovery feed.

        Applies every SQL-expressible filter: active, not the viewer, age
        inside the viewer's range, not liked or passed by the viewer, no
        block in either direction, not already matched. When ``box`` is
        given, candidates must have a location inside it; the exact
        great-circle check is left to the caller.

        Args:
            viewer: User requesting the feed
            today: Date used for age computation
            box: Optional (min_lat, max_lat, min_lng, max_lng) prefilter

        Returns:
            Candidate users ordered by ID
        """
        viewer_id = viewer.id

        liked = select(Like.to_user_id).where(Like.from_user_id == viewer_id)
        passed = select(Pass.to_user_id).where(Pass.from_user_id == viewer_id)
        blocked_by_viewer = select(UserBlock.blocked_id).where(UserBlock.blocker_id == viewer_id)
        blocked_viewer = select(UserBlock.blocker_id).where(UserBlock.blocked_id == viewer_id)
        matched_as_a = select(Match.user_b_id).where(Match.user_a_id == viewer_id)
        matched_as_b = select(Match.user_a_id).where(Match.user_b_id == viewer_id)

        # age >= n  <=>  birth_date <= years_before(today, n)
        oldest_birth_date = years_before(today, viewer.age_range_max + 1)
        youngest_birth_date = years_before(today, viewer.age_range_min)

        query = select(User).where(
            User.is_active.is_(True),
            User.id != viewer_id,
            User.birth_date > oldest_birth_date,
            User.birth_date <= youngest_birth_date,
            User.id.not_in(liked),
            User.id.not_in(passed),
            User.id.not_in(blocked_by_viewer),
            User.id.not_in(blocked_viewer),
            User.id.not_in(matched_as_a),
            User.id.not_in(matched_as_b),
        )

        if box is not None:
            min_lat, max_lat, min_lng, max_lng = box
            query = query.where(
                User.latitude.is_not(None),
                User.longitude.is_not(None),
                User.latitude.between(min_lat, max_lat),
                User.longitude.between(min_lng, max_lng),
            )

        result = await self.db.execute(query.order_by(User.id))
        return list(result.scalars().all())

    @staticmethod
    def box_for(viewer: User) -> Optional[Tuple[float, float, float, float]]:
        """Bounding box of the viewer's search radius, or None without a location."""
        if not viewer.has_location:
            return None
        return bounding_box(viewer.latitude, viewer.longitude, viewer.max_distance_km)

