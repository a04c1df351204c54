from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from ..core.dependencies import get_db
from ..core.responses import ApiResponse
from ..schemas.menu import MenuCategoryCreate, MenuCategoryResponse, MenuItemCreate, MenuItemResponse
from ..services.menu_service import menu_service


router = APIRouter(prefix="/menu", tags=["Menu Catalog"])


@router.post("/categories", response_model=ApiResponse[MenuCategoryResponse], status_code=status.HTTP_201_CREATED)
async def create_menu_category(category_data: MenuCategoryCreate, db: AsyncSession = Depends(get_db)):
    category = await menu_service.create_category(category_data, db)
    return {"message": "Menu category created successfully", "data": category}


@router.get("/categories", response_model=ApiResponse[List[MenuCategoryResponse]])
async def get_menu_categories(
    restaurant_id: Optional[int] = Query(None, alias="restaurantId"),
    db: AsyncSession = Depends(get_db),
):
    categories = await menu_service.get_categories(restaurant_id, db)
    return {"message": "Menu categories fetched successfully", "data": categories}


@router.post("/items", response_model=ApiResponse[MenuItemResponse], status_code=status.HTTP_201_CREATED)
async def create_menu_item(item_data: MenuItemCreate, db: AsyncSession = Depends(get_db)):
    """
    **Create Menu Item**

    The category must belong to the same restaurant as the item.
    """
    item = await menu_service.create_item(item_data, db)
    return {"message": "Menu item created successfully", "data": item}


@router.get("/items", response_model=ApiResponse[List[MenuItemResponse]])
async def get_menu_items(
    restaurant_id: Optional[int] = Query(None, alias="restaurantId"),
    category_id: Optional[int] = Query(None, alias="categoryId"),
    db: AsyncSession = Depends(get_db),
):
    items = await menu_service.get_items(restaurant_id, category_id, db)
    return {"message": "Menu items fetched successfully", "data": items}
