"""Catalog schemas."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class SubcategoryPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    subcategory_id: str = Field(serialization_alias="id")
    category_id: str
    name: str
    description: str | None = None


class CategoryPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category_id: str = Field(serialization_alias="id")
    name: str
    icon: str | None = None
    subcategories: list[SubcategoryPublic] = []


class ProfessionalServicePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    professional_service_id: str = Field(serialization_alias="id")
    professional_id: str
    subcategory_id: str
    price: Decimal
    subcategory: SubcategoryPublic
