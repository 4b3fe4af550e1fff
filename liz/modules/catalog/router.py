"""Catalog read-only routes."""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload, with_loader_criteria

from liz.core.database import get_db
from liz.modules.catalog.models import Category, ProfessionalService, Subcategory
from liz.modules.catalog.schemas import CategoryPublic, ProfessionalServicePublic

router = APIRouter(prefix="/api/v1/catalog", tags=["catalog"])


@router.get("/categories", response_model=list[CategoryPublic])
async def list_categories(db: AsyncSession = Depends(get_db)) -> list[Category]:
    result = await db.execute(
        select(Category)
        .options(
            selectinload(Category.subcategories),
            with_loader_criteria(Subcategory, Subcategory.is_active.is_(True)),
        )
        .where(Category.is_active.is_(True))
        .order_by(Category.sort_order, Category.name)
    )
    return list(result.scalars().all())


@router.get("/professionals/{professional_id}/services", response_model=list[ProfessionalServicePublic])
async def list_professional_services(
    professional_id: str,
    db: AsyncSession = Depends(get_db),
) -> list[ProfessionalService]:
    result = await db.execute(
        select(ProfessionalService)
        .options(selectinload(ProfessionalService.subcategory))
        .where(
            ProfessionalService.professional_id == professional_id,
            ProfessionalService.is_active.is_(True),
        )
        .order_by(ProfessionalService.price)
    )
    return list(result.scalars().all())
