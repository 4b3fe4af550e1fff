"""Pydantic schemas for users and addresses."""

from datetime import datetime
from decimal import Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from liz.shared.enums import UserType


class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    user_id: str = Field(serialization_alias="id")
    email: str
    name: str
    phone_number: str | None = Field(default=None, serialization_alias="phone")
    avatar_url: str | None = None
    user_type: UserType
    client_rating_avg: Decimal
    client_review_count: int


class UserUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    phone_number: str | None = Field(
        default=None,
        max_length=32,
        validation_alias=AliasChoices("phone", "phone_number"),
    )
    avatar_url: str | None = Field(default=None, max_length=255)


class AddressBase(BaseModel):
    label: str | None = Field(default=None, max_length=60)
    street: str = Field(..., min_length=1, max_length=200)
    number: str = Field(..., min_length=1, max_length=20)
    complement: str | None = Field(default=None, max_length=120)
    neighborhood: str = Field(..., min_length=1, max_length=120)
    city: str = Field(..., min_length=1, max_length=120)
    state: str = Field(..., min_length=2, max_length=2)
    zip_code: str = Field(
        ...,
        pattern=r"^\d{5}-?\d{3}$",
        validation_alias=AliasChoices("zipCode", "zip_code"),
    )
    is_default: bool = False


class AddressCreate(AddressBase):
    pass


class AddressUpdate(BaseModel):
    label: str | None = Field(default=None, max_length=60)
    street: str | None = Field(default=None, min_length=1, max_length=200)
    number: str | None = Field(default=None, min_length=1, max_length=20)
    complement: str | None = Field(default=None, max_length=120)
    neighborhood: str | None = Field(default=None, min_length=1, max_length=120)
    city: str | None = Field(default=None, min_length=1, max_length=120)
    state: str | None = Field(default=None, min_length=2, max_length=2)
    zip_code: str | None = Field(
        default=None,
        pattern=r"^\d{5}-?\d{3}$",
        validation_alias=AliasChoices("zipCode", "zip_code"),
    )
    is_default: bool | None = None


class AddressPublic(AddressBase):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    address_id: str = Field(serialization_alias="id")
    user_id: str
    created_at: datetime
    updated_at: datetime
