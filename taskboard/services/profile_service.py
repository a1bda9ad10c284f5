"""Profile service: the people tasks can be assigned to."""

import logging

from taskboard.core import db_client
from taskboard.core.errors import NotAuthorizedError, NotFoundError
from taskboard.core.logging import span
from taskboard.domain.create_models import ProfileCreate
from taskboard.domain.profile import Profile, Viewer


logger = logging.getLogger(__name__)

COLLECTION = "profiles"


async def list_profiles() -> list[Profile]:
    """Get all profiles, ordered by display name."""
    with span("profile_service.list_profiles"):
        records = await db_client.list_all_records(
            collection=COLLECTION,
            sort="display_name",
        )
        return [Profile.model_validate(r) for r in records]


async def get_profile(*, profile_id: str) -> Profile:
    """Get a profile by ID.

    Raises:
        NotFoundError: If no profile has this ID
    """
    try:
        record = await db_client.get_record(collection=COLLECTION, record_id=profile_id)
    except db_client.RecordNotFoundError as e:
        raise NotFoundError(f"Profile {profile_id} not found") from e
    return Profile.model_validate(record)


async def get_profile_by_email(*, email: str) -> Profile | None:
    """Get a profile by email (case-insensitive match on the stored lowercase value)."""
    record = await db_client.get_first_record(
        collection=COLLECTION,
        filter_query=f'email = "{db_client.sanitize_param(email.strip().lower())}"',
    )
    return Profile.model_validate(record) if record else None


async def get_viewer(*, viewer_id: str | None) -> Viewer:
    """Resolve an identity set by the upstream auth layer into a viewer.

    Raises:
        NotAuthorizedError: If the identity is missing or has no profile
    """
    if not viewer_id:
        raise NotAuthorizedError("Not signed in")
    try:
        profile = await get_profile(profile_id=viewer_id)
    except NotFoundError as e:
        logger.warning("Unknown viewer identity", extra={"viewer_id": viewer_id})
        raise NotAuthorizedError("Not signed in") from e
    return Viewer.from_profile(profile)


async def create_profile(*, payload: ProfileCreate) -> Profile:
    """Create a profile record.

    Returns:
        The created profile
    """
    with span("profile_service.create_profile"):
        data = payload.model_dump(mode="json")
        if data["email"]:
            data["email"] = data["email"].strip().lower()
        record = await db_client.create_record(collection=COLLECTION, data=data)
        logger.info("Created profile", extra={"profile_id": record["id"], "role": record["role"]})
        return Profile.model_validate(record)
