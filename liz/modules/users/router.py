"""User profile and address routes."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from liz.core.database import get_db
from liz.core.deps import get_current_user
from liz.modules.appointments.models import Appointment
from liz.modules.users.models import Address, User
from liz.modules.users.schemas import AddressCreate, AddressPublic, AddressUpdate, UserPublic, UserUpdate

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("/me", response_model=UserPublic)
async def get_me(current_user: User = Depends(get_current_user)) -> User:
    return current_user


@router.patch("/me", response_model=UserPublic)
async def update_me(
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> User:
    update_data = payload.model_dump(exclude_unset=True)
    if not update_data:
        return current_user
    if "name" in update_data:
        cleaned = (update_data["name"] or "").strip()
        if not cleaned:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name cannot be empty")
        update_data["name"] = cleaned
    for key, value in update_data.items():
        setattr(current_user, key, value)
    await db.commit()
    await db.refresh(current_user)
    return current_user


@router.get("/addresses", response_model=list[AddressPublic])
async def list_addresses(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[Address]:
    result = await db.execute(
        select(Address)
        .where(Address.user_id == current_user.user_id)
        .order_by(Address.is_default.desc(), Address.created_at)
    )
    return list(result.scalars().all())


@router.post("/addresses", response_model=AddressPublic, status_code=status.HTTP_201_CREATED)
async def create_address(
    payload: AddressCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Address:
    if payload.is_default:
        await _clear_default(current_user.user_id, db)
    address = Address(user_id=current_user.user_id, **payload.model_dump())
    db.add(address)
    await db.commit()
    await db.refresh(address)
    return address


async def _get_address_for_user(address_id: str, user: User, db: AsyncSession) -> Address:
    result = await db.execute(
        select(Address).where(
            Address.address_id == address_id,
            Address.user_id == user.user_id,
        )
    )
    address = result.scalar_one_or_none()
    if address is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Address not found")
    return address


async def _clear_default(user_id: str, db: AsyncSession) -> None:
    await db.execute(
        update(Address)
        .where(Address.user_id == user_id, Address.is_default.is_(True))
        .values(is_default=False)
    )


@router.put("/addresses/{address_id}", response_model=AddressPublic)
async def update_address(
    address_id: str,
    payload: AddressUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Address:
    address = await _get_address_for_user(address_id, current_user, db)
    update_data = payload.model_dump(exclude_unset=True)
    if update_data.get("is_default"):
        await _clear_default(current_user.user_id, db)
    for key, value in update_data.items():
        setattr(address, key, value)
    await db.commit()
    await db.refresh(address)
    return address


@router.delete("/addresses/{address_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_address(
    address_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    address = await _get_address_for_user(address_id, current_user, db)
    in_use = await db.execute(select(Appointment.appointment_id).where(Appointment.address_id == address_id).limit(1))
    if in_use.first() is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Address is used by an appointment")
    await db.delete(address)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Address is used by an appointment")
