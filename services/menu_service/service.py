from typing import Optional, Sequence

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import Conflict, Internal, NotFound
from shared.money import to_money

from .images import ImageStore, ImageStoreError, decode_image
from .models import MenuItem
from .repository import MenuItemRepository
from .schemas import MenuItemCreate, MenuItemUpdate

logger = structlog.get_logger(__name__)


async def _discard_image(images: ImageStore, url: str) -> None:
    """Best-effort removal; a failure here never fails the calling operation."""
    try:
        await images.delete(url)
    except ImageStoreError as exc:
        logger.warning("image_removal_failed", url=url, error=str(exc))


class MenuService:

    @staticmethod
    async def list_public_menu_items(db: AsyncSession) -> Sequence[MenuItem]:
        return await MenuItemRepository.list_public(db)

    @staticmethod
    async def get_menu_item_details(db: AsyncSession, item_id: str) -> Optional[MenuItem]:
        return await MenuItemRepository.get_by_id(db, item_id)

    @staticmethod
    async def list_menu_items(db: AsyncSession) -> Sequence[MenuItem]:
        return await MenuItemRepository.list_all(db)

    @staticmethod
    async def _get_or_404(db: AsyncSession, item_id: str) -> MenuItem:
        item = await MenuItemRepository.get_by_id(db, item_id)
        if not item:
            raise NotFound(f"Menu item {item_id} not found")
        return item

    @staticmethod
    async def register_menu_item(
        db: AsyncSession, images: ImageStore, data: MenuItemCreate
    ) -> MenuItem:
        # Everything that can reject the request runs before the upload
        image = decode_image(data.image)
        price = to_money(data.price)

        try:
            image_url = await images.upload(image)
        except ImageStoreError as exc:
            logger.error("image_upload_failed", error=str(exc))
            raise Internal("Failed to store menu item image") from exc

        item = MenuItem(
            name=data.name,
            description=data.description,
            currency=data.currency,
            price=price,
            available=True,
            image=image_url,
        )
        try:
            item = await MenuItemRepository.create(db, item)
        except SQLAlchemyError as exc:
            await db.rollback()
            await _discard_image(images, image_url)
            logger.error("menu_item_create_failed", error=str(exc))
            raise Internal("Failed to create menu item") from exc

        logger.info("menu_item_registered", menu_item_id=item.id, name=item.name)
        return item

    @staticmethod
    async def update_menu_item(
        db: AsyncSession, images: ImageStore, item_id: str, data: MenuItemUpdate
    ) -> MenuItem:
        item = await MenuService._get_or_404(db, item_id)
        # Decode before touching the store so a bad payload uploads nothing
        new_image = decode_image(data.image) if data.image else None
        price = to_money(data.price)

        previous_url = item.image
        new_url = None
        if new_image is not None:
            try:
                new_url = await images.upload(new_image)
            except ImageStoreError as exc:
                logger.error("image_upload_failed", menu_item_id=item_id, error=str(exc))
                raise Internal("Failed to store menu item image") from exc

        item.name = data.name
        item.description = data.description
        item.currency = data.currency
        item.price = price
        if new_url:
            item.image = new_url

        try:
            item = await MenuItemRepository.update(db, item)
        except SQLAlchemyError as exc:
            await db.rollback()
            if new_url:
                await _discard_image(images, new_url)
            logger.error("menu_item_update_failed", menu_item_id=item_id, error=str(exc))
            raise Internal("Failed to update menu item") from exc

        if new_url and previous_url:
            await _discard_image(images, previous_url)
        return item

    @staticmethod
    async def toggle_availability(db: AsyncSession, item_id: str, available: bool) -> MenuItem:
        item = await MenuService._get_or_404(db, item_id)
        item.available = available
        try:
            item = await MenuItemRepository.update(db, item)
        except SQLAlchemyError as exc:
            await db.rollback()
            raise Internal("Failed to update availability") from exc

        logger.info("menu_item_availability_changed", menu_item_id=item_id, available=available)
        return item

    @staticmethod
    async def delete_menu_item(db: AsyncSession, images: ImageStore, item_id: str) -> MenuItem:
        item = await MenuService._get_or_404(db, item_id)
        try:
            await MenuItemRepository.delete(db, item)
        except IntegrityError as exc:
            await db.rollback()
            raise Conflict("Menu item is referenced by existing orders") from exc
        except SQLAlchemyError as exc:
            await db.rollback()
            raise Internal("Failed to delete menu item") from exc

        if item.image:
            await _discard_image(images, item.image)

        logger.info("menu_item_deleted", menu_item_id=item_id)
        return item
