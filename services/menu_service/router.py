from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security.dependencies import require_admin, require_public

from .images import ImageStore, get_image_store
from .schemas import AvailabilityUpdate, MenuItemCreate, MenuItemResponse, MenuItemUpdate
from .service import MenuService

public_router = APIRouter(prefix="/menu", tags=["Menu"], dependencies=[Depends(require_public)])

# THIS PROTECTS THE ENTIRE BACK OFFICE CATALOG
router = APIRouter(
    prefix="/admin/menu",
    tags=["Menu administration"],
    dependencies=[Depends(require_admin)],
)


@public_router.get("/", response_model=list[MenuItemResponse])
async def list_public_menu_items(db: AsyncSession = Depends(get_db)):
    return await MenuService.list_public_menu_items(db)


@public_router.get("/{item_id}", response_model=Optional[MenuItemResponse])
async def get_menu_item_details(item_id: str, db: AsyncSession = Depends(get_db)):
    # Absence is a normal result here, not an error
    return await MenuService.get_menu_item_details(db, item_id)


@router.get("/", response_model=list[MenuItemResponse])
async def list_menu_items(db: AsyncSession = Depends(get_db)):
    return await MenuService.list_menu_items(db)


@router.post("/", response_model=MenuItemResponse, status_code=status.HTTP_201_CREATED)
async def register_menu_item(
    payload: MenuItemCreate,
    db: AsyncSession = Depends(get_db),
    images: ImageStore = Depends(get_image_store),
):
    return await MenuService.register_menu_item(db, images, payload)


@router.put("/{item_id}", response_model=MenuItemResponse)
async def update_menu_item(
    item_id: str,
    payload: MenuItemUpdate,
    db: AsyncSession = Depends(get_db),
    images: ImageStore = Depends(get_image_store),
):
    return await MenuService.update_menu_item(db, images, item_id, payload)


@router.patch("/{item_id}/availability", response_model=MenuItemResponse)
async def toggle_availability(
    item_id: str, payload: AvailabilityUpdate, db: AsyncSession = Depends(get_db)
):
    return await MenuService.toggle_availability(db, item_id, payload.available)


@router.delete("/{item_id}", response_model=MenuItemResponse)
async def delete_menu_item(
    item_id: str,
    db: AsyncSession = Depends(get_db),
    images: ImageStore = Depends(get_image_store),
):
    return await MenuService.delete_menu_item(db, images, item_id)
