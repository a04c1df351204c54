import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import BadRequestException, NotFoundException
from ..models import MenuCategory, MenuItem, MenuSection
from ..schemas.menu import (
    MenuCategoryCreate,
    MenuItemCreate,
    MenuSectionCreate,
    MenuSectionUpdate,
)
from .restaurant_service import restaurant_service


logger = logging.getLogger(__name__)


class MenuService:
    """
    Menu sections of a restaurant and the category/item catalog they point at.

    A section references one MenuCategory and an ordered list of MenuItem ids.
    Every referenced category and item must belong to the section's restaurant.
    """

    async def _ensure_category_exists(self, restaurant_id: int, category_id: int, db: AsyncSession) -> None:
        category = await db.get(MenuCategory, category_id)
        if not category or category.restaurant_id != restaurant_id:
            raise BadRequestException("Invalid menu category")

    async def _ensure_categories_exist(self, restaurant_id: int, category_ids: List[int], db: AsyncSession) -> None:
        unique_ids = set(category_ids)
        found = await db.scalar(
            select(func.count(MenuCategory.id)).where(
                MenuCategory.id.in_(unique_ids), MenuCategory.restaurant_id == restaurant_id
            )
        )
        if found != len(unique_ids):
            raise BadRequestException("Some menu categories are invalid")

    async def _ensure_items_exist(self, restaurant_id: int, item_ids: List[int], db: AsyncSession) -> None:
        unique_ids = set(item_ids)
        if not unique_ids:
            return
        found = await db.scalar(
            select(func.count(MenuItem.id)).where(MenuItem.id.in_(unique_ids), MenuItem.restaurant_id == restaurant_id)
        )
        if found != len(unique_ids):
            raise BadRequestException("Some menu items are invalid")

    async def _get_section(self, restaurant_id: int, section_id: int, db: AsyncSession) -> MenuSection:
        result = await db.execute(
            select(MenuSection).where(MenuSection.id == section_id, MenuSection.restaurant_id == restaurant_id)
        )
        section = result.scalars().first()
        if not section:
            raise NotFoundException("Restaurant or menu section not found")
        return section

    async def get_menu(self, restaurant_id: int, db: AsyncSession) -> List[Dict[str, Any]]:
        """
        Menu sections in order with their category and items resolved
        """
        restaurant = await restaurant_service.get_restaurant_by_id(restaurant_id, db)
        sections = list(restaurant.menu)

        category_ids = {section.category_id for section in sections}
        item_ids = {item_id for section in sections for item_id in (section.item_ids or [])}

        categories = {}
        if category_ids:
            result = await db.execute(select(MenuCategory).where(MenuCategory.id.in_(category_ids)))
            categories = {category.id: category for category in result.scalars().all()}

        items = {}
        if item_ids:
            result = await db.execute(select(MenuItem).where(MenuItem.id.in_(item_ids)))
            items = {item.id: item for item in result.scalars().all()}

        return [
            {
                "id": section.id,
                "category": categories.get(section.category_id),
                "items": [items[item_id] for item_id in (section.item_ids or []) if item_id in items],
            }
            for section in sections
        ]

    async def create_section(self, restaurant_id: int, section_data: MenuSectionCreate, db: AsyncSession) -> List[MenuSection]:
        restaurant = await restaurant_service.get_restaurant_by_id(restaurant_id, db)
        await self._ensure_category_exists(restaurant_id, section_data.category, db)
        await self._ensure_items_exist(restaurant_id, section_data.items, db)

        restaurant.menu.append(MenuSection(category_id=section_data.category, item_ids=list(section_data.items)))
        await db.commit()
        await db.refresh(restaurant)
        return list(restaurant.menu)

    async def create_sections(self, restaurant_id: int, sections: List[MenuSectionCreate], db: AsyncSession) -> List[MenuSection]:
        """Add several sections at once. Nothing is written unless every reference is valid."""
        restaurant = await restaurant_service.get_restaurant_by_id(restaurant_id, db)
        await self._ensure_categories_exist(restaurant_id, [section.category for section in sections], db)
        await self._ensure_items_exist(restaurant_id, [item_id for section in sections for item_id in section.items], db)

        for section in sections:
            restaurant.menu.append(MenuSection(category_id=section.category, item_ids=list(section.items)))
        await db.commit()
        await db.refresh(restaurant)
        return list(restaurant.menu)

    async def update_section(
        self, restaurant_id: int, section_id: int, section_data: MenuSectionUpdate, db: AsyncSession
    ) -> MenuSection:
        section = await self._get_section(restaurant_id, section_id, db)

        if section_data.category is not None:
            await self._ensure_category_exists(restaurant_id, section_data.category, db)
            section.category_id = section_data.category

        if section_data.items is not None:
            await self._ensure_items_exist(restaurant_id, section_data.items, db)
            section.item_ids = list(section_data.items)

        await db.commit()
        await db.refresh(section)
        return section

    async def delete_section(self, restaurant_id: int, section_id: int, db: AsyncSession) -> bool:
        await restaurant_service.get_restaurant_by_id(restaurant_id, db)
        section = await self._get_section(restaurant_id, section_id, db)
        await db.delete(section)
        await db.commit()
        return True

    # Catalog

    async def create_category(self, category_data: MenuCategoryCreate, db: AsyncSession) -> MenuCategory:
        await restaurant_service.get_restaurant_by_id(category_data.restaurant_id, db)
        category = MenuCategory(**category_data.model_dump())
        db.add(category)
        await db.commit()
        await db.refresh(category)
        logger.info("Created menu category %s for restaurant %s", category.id, category.restaurant_id)
        return category

    async def get_categories(self, restaurant_id: Optional[int], db: AsyncSession) -> List[MenuCategory]:
        query = select(MenuCategory)
        if restaurant_id is not None:
            query = query.where(MenuCategory.restaurant_id == restaurant_id)
        result = await db.execute(query.order_by(MenuCategory.display_order, MenuCategory.id))
        return result.scalars().all()

    async def create_item(self, item_data: MenuItemCreate, db: AsyncSession) -> MenuItem:
        await restaurant_service.get_restaurant_by_id(item_data.restaurant_id, db)
        category = await db.get(MenuCategory, item_data.category_id)
        if not category or category.restaurant_id != item_data.restaurant_id:
            raise BadRequestException("Invalid menu category")

        item = MenuItem(**item_data.model_dump())
        db.add(item)
        await db.commit()
        await db.refresh(item)
        return item

    async def get_items(
        self, restaurant_id: Optional[int], category_id: Optional[int], db: AsyncSession
    ) -> List[MenuItem]:
        query = select(MenuItem)
        if restaurant_id is not None:
            query = query.where(MenuItem.restaurant_id == restaurant_id)
        if category_id is not None:
            query = query.where(MenuItem.category_id == category_id)
        result = await db.execute(query.order_by(MenuItem.id))
        return result.scalars().all()


menu_service = MenuService()
