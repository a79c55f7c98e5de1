"""Menu catalog routes"""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from api.dependencies import get_session_manager
from domain.catalog import MenuCategory, MenuItem
from services import OrderSessionManager

router = APIRouter(prefix="/menu", tags=["Menu"])


@router.get("/categories", response_model=List[MenuCategory])
def list_categories(manager: OrderSessionManager = Depends(get_session_manager)):
    return manager.list_categories()


@router.get("/items", response_model=List[MenuItem])
def list_menu_items(
    category_id: Optional[int] = Query(None, description="Only items of this category"),
    manager: OrderSessionManager = Depends(get_session_manager),
):
    """List menu items, optionally for a single category"""
    return manager.list_menu(category_id)
