from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_current_organisation_id, get_session
from ..domain.errors import BookingError, SlugTakenError
from ..infrastructure.repositories import SqlAlchemyOrganisationRepository
from ..schemas import Ok, OrganisationCreate, OrganisationRead, OrganisationSettings
from ..usecases import organisations as organisation_usecase
from .errors import parse_id, to_http

router = APIRouter(prefix="/organisations", tags=["organisations"])


@router.get("/search", response_model=List[OrganisationRead])
async def search_organisations(
    q: str = Query(default=""),
    session: AsyncSession = Depends(get_session),
) -> list[OrganisationRead]:
    rows = await organisation_usecase.search_organisations(SqlAlchemyOrganisationRepository(session), query=q)
    return [OrganisationRead.from_db(organisation=organisation) for organisation in rows]


@router.post("", response_model=OrganisationRead, status_code=status.HTTP_201_CREATED)
async def create_organisation(
    payload: OrganisationCreate,
    session: AsyncSession = Depends(get_session),
) -> OrganisationRead:
    org_repo = SqlAlchemyOrganisationRepository(session)
    try:
        async with session.begin():
            organisation = await organisation_usecase.create_organisation(
                org_repo,
                name=payload.name,
                slug=payload.slug,
                notification_phone=payload.notification_phone,
            )
    except BookingError as exc:
        raise to_http(exc)
    except IntegrityError:
        raise to_http(SlugTakenError())
    return OrganisationRead.from_db(organisation=organisation)


@router.get("/{slug}", response_model=OrganisationRead)
async def get_organisation(
    slug: str,
    session: AsyncSession = Depends(get_session),
) -> OrganisationRead:
    try:
        organisation = await organisation_usecase.get_organisation(SqlAlchemyOrganisationRepository(session), slug=slug)
    except BookingError as exc:
        raise to_http(exc)
    return OrganisationRead.from_db(organisation=organisation)


@router.put("/{organisation_id}/settings", response_model=Ok)
async def update_settings(
    organisation_id: str,
    payload: OrganisationSettings,
    session: AsyncSession = Depends(get_session),
    actor_id: int = Depends(get_current_organisation_id),
) -> Ok:
    organisation_pk = parse_id(organisation_id, label="organisation")
    org_repo = SqlAlchemyOrganisationRepository(session)
    try:
        async with session.begin():
            await organisation_usecase.update_settings(
                org_repo,
                organisation_id=organisation_pk,
                actor_id=actor_id,
                notification_phone=payload.notification_phone,
            )
    except BookingError as exc:
        raise to_http(exc)
    return Ok()
