"""Reference catalog API routes.

Read-only option lists for forms. Hidden rows are never listed.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from alliedhealth.auth import get_caller
from alliedhealth.database import get_db
from alliedhealth.identity import CallerContext
from alliedhealth.repositories.catalog import CatalogRepository
from alliedhealth.schemas.catalog import InterventionOption, Option, PatientOption, WardOption

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/departments", response_model=list[Option])
async def list_departments(
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller),
) -> list[Option]:
    return [Option(id=d.id, name=d.name) for d in await CatalogRepository(db).departments()]


@router.get("/wards", response_model=list[WardOption])
async def list_wards(
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller),
) -> list[WardOption]:
    """Wards with every department covering them, default department first."""
    wards = await CatalogRepository(db).wards()
    return [
        WardOption(
            id=ward.id,
            name=ward.name,
            departments=[
                dept_id
                for dept_id in dict.fromkeys([ward.default_department_id, *(c.department_id for c in ward.coverages)])
                if dept_id is not None
            ],
        )
        for ward in wards
    ]


@router.get("/specialties", response_model=list[Option])
async def list_specialties(
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller),
) -> list[Option]:
    return [Option(id=s.id, name=s.name) for s in await CatalogRepository(db).specialties()]


@router.get("/interventions", response_model=list[InterventionOption])
async def list_interventions(
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller),
) -> list[InterventionOption]:
    return [
        InterventionOption(id=i.id, name=i.name, specialty_id=i.specialty_id)
        for i in await CatalogRepository(db).interventions()
    ]


@router.get("/patients", response_model=list[PatientOption])
async def list_patients(
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller),
) -> list[PatientOption]:
    return [PatientOption(id=p.id, name=p.full_name, mrn=p.mrn) for p in await CatalogRepository(db).patients()]


@router.get("/assistants", response_model=list[Option])
async def list_assistants(
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller),
) -> list[Option]:
    """Allied-health assistants, as an option list."""
    return [Option(id=u.id, name=u.full_name) for u in await CatalogRepository(db).assistants()]
