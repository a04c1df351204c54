from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from ..core.dependencies import get_db
from ..core.responses import ApiResponse
from ..schemas.menu import (
    MenuSectionBulkCreate,
    MenuSectionCreate,
    MenuSectionDetail,
    MenuSectionResponse,
    MenuSectionUpdate,
)
from ..services.menu_service import menu_service


router = APIRouter(prefix="/restaurants", tags=["Restaurant Menu"])


@router.get("/{restaurant_id}/menu", response_model=ApiResponse[List[MenuSectionDetail]])
async def get_restaurant_menu(restaurant_id: int, db: AsyncSession = Depends(get_db)):
    """
    **Get Menu**

    Menu sections in order, each with its category and items.
    """
    menu = await menu_service.get_menu(restaurant_id, db)
    return {"message": "Menu fetched successfully", "data": menu}


@router.post(
    "/{restaurant_id}/menu",
    response_model=ApiResponse[List[MenuSectionResponse]],
    status_code=status.HTTP_201_CREATED,
)
async def create_menu_section(
    restaurant_id: int, section_data: MenuSectionCreate, db: AsyncSession = Depends(get_db)
):
    """
    **Add Menu Section**

    **Request Body:**

    - **category**: id of an existing menu category
    - **items**: ids of existing menu items, in display order

    **Returns:** the full list of sections
    """
    menu = await menu_service.create_section(restaurant_id, section_data, db)
    return {"message": "Menu section added successfully", "data": menu}


@router.post(
    "/{restaurant_id}/menu/bulk",
    response_model=ApiResponse[List[MenuSectionResponse]],
    status_code=status.HTTP_201_CREATED,
)
async def create_menu_sections(
    restaurant_id: int, payload: MenuSectionBulkCreate, db: AsyncSession = Depends(get_db)
):
    """
    **Add Several Menu Sections**

    All sections are validated first; a single unknown category or item
    rejects the whole request.
    """
    menu = await menu_service.create_sections(restaurant_id, payload.menus, db)
    return {"message": f"{len(payload.menus)} menu sections added successfully", "data": menu}


@router.patch("/{restaurant_id}/menu/{section_id}", response_model=ApiResponse[MenuSectionResponse])
async def update_menu_section(
    restaurant_id: int, section_id: int, section_data: MenuSectionUpdate, db: AsyncSession = Depends(get_db)
):
    section = await menu_service.update_section(restaurant_id, section_id, section_data, db)
    return {"message": "Menu section updated successfully", "data": section}


@router.delete("/{restaurant_id}/menu/{section_id}", response_model=ApiResponse[None])
async def delete_menu_section(restaurant_id: int, section_id: int, db: AsyncSession = Depends(get_db)):
    await menu_service.delete_section(restaurant_id, section_id, db)
    return {"message": "Menu section deleted successfully"}
