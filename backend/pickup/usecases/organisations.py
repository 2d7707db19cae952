import re

from ..domain.errors import ForbiddenError, InvalidOrganisationError, NotFoundError, SlugTakenError
from ..domain.repositories import OrganisationRepository
from ..models import Organisation

_SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
MIN_SEARCH_LENGTH = 2


def normalise_slug(slug: str) -> str:
    return slug.strip().lower()


def _clean_phone(phone: str | None) -> str | None:
    return (phone or "").strip() or None


async def create_organisation(
    org_repo: OrganisationRepository,
    *,
    name: str,
    slug: str,
    notification_phone: str | None = None,
) -> Organisation:
    name = name.strip()
    slug = normalise_slug(slug)
    if not name or not _SLUG_RE.match(slug):
        raise InvalidOrganisationError()
    if await org_repo.get_by_slug(slug) is not None:
        raise SlugTakenError()
    return await org_repo.create(slug=slug, name=name, notification_phone=_clean_phone(notification_phone))


async def update_settings(
    org_repo: OrganisationRepository,
    *,
    organisation_id: int,
    actor_id: int,
    notification_phone: str | None,
) -> Organisation:
    if organisation_id != actor_id:
        raise ForbiddenError()
    organisation = await org_repo.get(organisation_id)
    if organisation is None:
        raise NotFoundError("Organisation not found.")
    organisation.notification_phone = _clean_phone(notification_phone)
    return await org_repo.save(organisation)


async def get_organisation(org_repo: OrganisationRepository, *, slug: str) -> Organisation:
    organisation = await org_repo.get_by_slug(normalise_slug(slug))
    if organisation is None:
        raise NotFoundError("Organisation not found.")
    return organisation


async def search_organisations(
    org_repo: OrganisationRepository,
    *,
    query: str,
    limit: int = 10,
) -> list[Organisation]:
    query = query.strip()
    if len(query) < MIN_SEARCH_LENGTH:
        return []
    return await org_repo.search(query, limit)
