"""
User service containing business logic for identity and profiles.
Handles registration, login, profile updates and profile photos.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.errors import Conflict, InvalidInput, NotFound, PayloadTooLarge, Unauthenticated
from app.core.security import (
    REFRESH_TOKEN,
    create_access_token,
    create_refresh_token,
    hash_password,
    user_id_from_token,
    verify_password,
)
from app.core.storage import PhotoStore, get_photo_store, sniff_image
from app.models.user import Gender, Interest, User
from app.repositories.user_repo import PhotoRepository, UserRepository
from app.schemas.user import LoginResponse, PhotoResponse, ProfileResponse, TokenResponse, TokenUser
from app.utils.datetime_utils import ensure_utc, utc_now
from app.utils.validators import (
    normalize_email,
    validate_adult,
    validate_age_range,
    validate_bio,
    validate_choice,
    validate_coordinates,
    validate_display_name,
    validate_max_distance,
    validate_password,
    validate_text_length,
)

logger = logging.getLogger(__name__)

CAPTION_MAX = 200
GENDERS = [g.value for g in Gender]


class UserService:
    """Service for identity and profile operations."""

    def __init__(self, db: AsyncSession, photo_store: Optional[PhotoStore] = None):
        """
        Initialize user service.

        Args:
            db: Database session
            photo_store: Photo byte store (defaults to the configured store)
        """
        self.db = db
        self.user_repo = UserRepository(db)
        self.photo_repo = PhotoRepository(db)
        self.photo_store = photo_store or get_photo_store()

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def register(
        self,
        email: str,
        password: str,
        birth_date: date,
        display_name: str,
        gender: str,
        today: Optional[date] = None
    ) -> User:
        """
        Create a new account.

        Args:
            email: Email address (normalized to lowercase)
            password: Plain password
            birth_date: Birth date; the user must be at least 18
            display_name: Public name
            gender: One of the Gender values
            today: Reference date for the age check (defaults to today, UTC)

        Returns:
            The new user

        Raises:
            InvalidInput: If any field fails validation
            Conflict: If the email is already registered
        """
        email = normalize_email(email)
        validate_password(password)
        validate_choice(gender, GENDERS, "gender")
        display_name = validate_display_name(display_name)
        validate_adult(birth_date, today)

        if await self.user_repo.email_exists(email):
            raise Conflict("Email is already registered")

        try:
            user = await self.user_repo.create(
                email=email,
                password_hash=hash_password(password),
                birth_date=birth_date,
                display_name=display_name,
                gender=Gender(gender),
            )
        except IntegrityError:
            raise Conflict("Email is already registered")

        await self.db.commit()
        logger.info("User registered: %s", user.id)
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """
        Verify credentials.

        A temporarily banned user whose ban has ended is reactivated here
        rather than waiting for the background sweep.

        Raises:
            Unauthenticated: Unknown email, wrong password or suspended account
        """
        try:
            email = normalize_email(email)
        except InvalidInput:
            raise Unauthenticated("Invalid email or password")

        user = await self.user_repo.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Failed login for %s", email)
            raise Unauthenticated("Invalid email or password")

        if not user.is_active:
            banned_until = ensure_utc(user.banned_until)
            if banned_until is not None and banned_until <= utc_now():
                user.is_active = True
                user.banned_until = None
                await self.db.commit()
                logger.info("Temporary ban expired at login for user %s", user.id)
            else:
                raise Unauthenticated("Your account is suspended")

        return user

    async def login(self, email: str, password: str) -> LoginResponse:
        """Authenticate and issue an access/refresh token pair."""
        user = await self.authenticate(email, password)
        return LoginResponse(
            access_token=create_access_token(user.id),
            refresh_token=create_refresh_token(user.id),
            user=TokenUser(id=user.id, email=user.email, display_name=user.display_name),
        )

    async def refresh(self, refresh_token: str) -> TokenResponse:
        """
        Exchange a refresh token for a new token pair.

        Raises:
            Unauthenticated: Invalid/expired token, wrong token type, or the
                user no longer exists or is suspended
        """
        user_id = user_id_from_token(refresh_token, expected_type=REFRESH_TOKEN)
        user = await self.user_repo.get(user_id)
        if user is None or not user.is_active:
            raise Unauthenticated("Invalid refresh token")
        return TokenResponse(
            access_token=create_access_token(user.id),
            refresh_token=create_refresh_token(user.id),
        )

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    async def get_profile(self, user_id: int) -> ProfileResponse:
        user = await self.user_repo.get(user_id)
        if user is None:
            raise NotFound("User not found")
        return ProfileResponse.from_user(user)

    async def update_profile(self, user: User, patch: Dict[str, Any]) -> ProfileResponse:
        """
        Apply a partial profile update.

        Only keys present in ``patch`` are touched; an empty patch is a
        successful no-op. Every present field is re-validated.

        Args:
            user: User being updated
            patch: Field values from the request (unset fields omitted)

        Returns:
            The full updated profile

        Raises:
            InvalidInput: If any field fails validation

        Example:
            ```python
            profile = await user_service.update_profile(user, {"bio": "Hi", "max_distance_km": 20})
            ```
        """
        if not patch:
            return ProfileResponse.from_user(user)

        changes: Dict[str, Any] = {}

        for field_name in ("show_age", "max_distance_km", "age_range_min", "age_range_max"):
            if field_name in patch and patch[field_name] is None:
                raise InvalidInput(f"{field_name} cannot be null")

        if "display_name" in patch:
            changes["display_name"] = validate_display_name(patch["display_name"])

        if "bio" in patch:
            changes["bio"] = validate_bio(patch["bio"])

        if "gender" in patch:
            changes["gender"] = Gender(validate_choice(patch["gender"], GENDERS, "gender"))

        if "location" in patch:
            location = patch["location"]
            if location is None:
                changes["latitude"] = None
                changes["longitude"] = None
            else:
                validate_coordinates(location["latitude"], location["longitude"])
                changes["latitude"] = location["latitude"]
                changes["longitude"] = location["longitude"]

        if "show_age" in patch:
            changes["show_age"] = patch["show_age"]

        if "max_distance_km" in patch:
            changes["max_distance_km"] = validate_max_distance(patch["max_distance_km"])

        if "age_range_min" in patch or "age_range_max" in patch:
            age_min = patch.get("age_range_min", user.age_range_min)
            age_max = patch.get("age_range_max", user.age_range_max)
            validate_age_range(age_min, age_max)
            changes["age_range_min"] = age_min
            changes["age_range_max"] = age_max

        interests: Optional[List[Interest]] = None
        if "interests" in patch:
            interests = await self._resolve_interests(patch["interests"] or [])

        for key, value in changes.items():
            setattr(user, key, value)
        if interests is not None:
            user.interests = interests

        await self.db.commit()
        logger.info("Profile updated for user %s: %s", user.id, sorted(patch))
        return ProfileResponse.from_user(user)

    async def _resolve_interests(self, interest_ids: List[int]) -> List[Interest]:
        unique_ids = sorted(set(interest_ids))
        interests = await self.user_repo.get_interests(unique_ids)
        found = {interest.id for interest in interests}
        missing = [i for i in unique_ids if i not in found]
        if missing:
            raise InvalidInput(f"Unknown interest id(s): {', '.join(str(i) for i in missing)}")
        return interests

    async def list_interests(self) -> List[Interest]:
        return await self.user_repo.list_interests()

    # ------------------------------------------------------------------
    # Photos
    # ------------------------------------------------------------------

    async def add_photo(
        self,
        user: User,
        data: bytes,
        is_primary: bool = False,
        caption: Optional[str] = None
    ) -> PhotoResponse:
        """
        Store a new profile photo.

        The first photo of a user always becomes primary. Setting a new
        primary unsets the previous one in the same transaction.

        Args:
            user: Owner
            data: Raw image bytes
            is_primary: Make this the primary photo
            caption: Optional caption (up to 200 characters)

        Returns:
            The stored photo

        Raises:
            PayloadTooLarge: If ``data`` exceeds the configured ceiling
            InvalidInput: Not an image, caption too long, or photo limit reached
        """
        if len(data) > settings.max_photo_bytes:
            raise PayloadTooLarge(
                f"Photo exceeds the maximum size of {settings.max_photo_bytes} bytes"
            )
        if caption is not None:
            caption = validate_text_length(caption, "Caption", max_length=CAPTION_MAX) or None

        info = sniff_image(data)
        await self._check_photo_limit(user.id)

        # Upload outside the row lock; the object is removed again if the insert fails
        url = await self.photo_store.put(data, info.mime_type)
        try:
            # Serializes concurrent uploads of the same user
            await self.user_repo.lock_pair(user.id, user.id)
            count = await self._check_photo_limit(user.id)

            make_primary = is_primary or count == 0
            if make_primary:
                await self.photo_repo.clear_primary(user.id)

            photo = await self.photo_repo.create(
                user_id=user.id,
                url=url,
                caption=caption,
                is_primary=make_primary,
                mime_type=info.mime_type,
                width=info.width,
                height=info.height,
                display_order=await self.photo_repo.next_display_order(user.id),
            )

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            await self.photo_store.delete(url)
            raise

        await self.db.refresh(user, attribute_names=["photos"])
        logger.info("Photo %s added for user %s (primary=%s)", photo.id, user.id, make_primary)
        return PhotoResponse.from_photo(photo)

    async def _check_photo_limit(self, user_id: int) -> int:
        """Current photo count, raising once the user is at the limit."""
        count = await self.photo_repo.count_for_user(user_id)
        if count >= settings.max_photos_per_user:
            raise InvalidInput(
                f"You can upload at most {settings.max_photos_per_user} photos"
            )
        return count

    async def delete_photo(self, user: User, photo_id: int) -> None:
        """
        Delete one of the user's photos.

        When the primary photo is removed, the earliest remaining photo
        becomes primary.

        Raises:
            NotFound: If the photo does not exist or belongs to someone else
        """
        photo = await self.photo_repo.get(photo_id)
        if photo is None or photo.user_id != user.id:
            raise NotFound("Photo not found")

        url = photo.url
        was_primary = photo.is_primary

        await self.photo_repo.delete(photo_id)

        if was_primary:
            remaining = await self.photo_repo.list_for_user(user.id)
            if remaining:
                remaining[0].is_primary = True

        await self.db.commit()
        await self.db.refresh(user, attribute_names=["photos"])
        await self.photo_store.delete(url)
        logger.info("Photo %s deleted for user %s", photo_id, user.id)
