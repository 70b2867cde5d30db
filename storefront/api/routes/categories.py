"""Categories: organise products."""
from fastapi import APIRouter, Depends

from storefront.api.deps import get_cache, get_data_service
from storefront.core.cache import QueryCache
from storefront.db.data_service import DataService
from storefront.schemas.category import CategoryCreate, CategoryResponse
from storefront.services import catalog_service

router = APIRouter()


@router.get("", response_model=list[CategoryResponse])
def list_categories(
    data: DataService = Depends(get_data_service),
    cache: QueryCache = Depends(get_cache),
):
    return cache.get_or_load(
        "categories",
        lambda: [CategoryResponse.model_validate(row).model_dump() for row in catalog_service.list_categories(data)],
    )


@router.post("", response_model=CategoryResponse, status_code=201)
def create_category(
    payload: CategoryCreate,
    data: DataService = Depends(get_data_service),
    cache: QueryCache = Depends(get_cache),
):
    category = catalog_service.create_category(data, payload.name, payload.description)
    cache.invalidate("categories")
    return CategoryResponse(
        id=category.id,
        name=category.name,
        description=category.description,
        created_at=category.created_at,
    )


@router.delete("/{category_id}", response_model=dict)
def delete_category(
    category_id: str,
    data: DataService = Depends(get_data_service),
    cache: QueryCache = Depends(get_cache),
):
    """Delete an empty category."""
    catalog_service.delete_category(data, category_id, cache=cache)
    return {"message": "Category deleted", "id": category_id}
