"""Products: inventory listing and catalog CRUD for the dashboard."""
from fastapi import APIRouter, Depends, File, Form, UploadFile
from typing import Optional

from storefront.api.deps import get_cache, get_data_service
from storefront.core.cache import QueryCache
from storefront.db.data_service import DataService
from storefront.schemas.product import ProductResponse, ProductUpdate
from storefront.services import catalog_service

router = APIRouter()


@router.get("", response_model=list[ProductResponse])
def list_products(
    data: DataService = Depends(get_data_service),
    cache: QueryCache = Depends(get_cache),
):
    """Newest first, with category name, margin and low-stock flag."""
    return cache.get_or_load(
        "products",
        lambda: [ProductResponse.model_validate(row).model_dump() for row in catalog_service.list_products(data)],
    )


# ==============================================================================
# LOW STOCK ALERT ENDPOINT
# ==============================================================================

@router.get("/low-stock", response_model=list[ProductResponse])
def get_low_stock_products(data: DataService = Depends(get_data_service)):
    """Products below the low-stock threshold, lowest quantity first."""
    return catalog_service.list_low_stock(data)


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: str, data: DataService = Depends(get_data_service)):
    return catalog_service.product_row(data.get("products", product_id, joins=["category"]))


# ==============================================================================
# PRODUCT CRUD ENDPOINTS
# ==============================================================================

@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    name: Optional[str] = Form(None),
    category_id: Optional[str] = Form(None),
    cost_price: Optional[str] = Form(None),
    selling_price: Optional[str] = Form(None),
    quantity: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    data: DataService = Depends(get_data_service),
    cache: QueryCache = Depends(get_cache),
):
    """Add a product. The image is optional and a failed upload does not block creation."""
    image_content = await image.read() if image is not None else None
    product = catalog_service.create_product(
        data,
        {
            "name": name,
            "category_id": category_id,
            "cost_price": cost_price,
            "selling_price": selling_price,
            "quantity": quantity,
            "description": description,
        },
        image_filename=image.filename if image is not None else None,
        image_content=image_content,
        cache=cache,
    )
    return catalog_service.product_row(product)


@router.patch("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: str,
    updates: ProductUpdate,
    data: DataService = Depends(get_data_service),
    cache: QueryCache = Depends(get_cache),
):
    """Update an existing product, including direct stock edits."""
    product = catalog_service.update_product(data, product_id, updates.model_dump(exclude_unset=True), cache=cache)
    return catalog_service.product_row(product)


@router.delete("/{product_id}", response_model=dict)
def delete_product(
    product_id: str,
    data: DataService = Depends(get_data_service),
    cache: QueryCache = Depends(get_cache),
):
    """Delete a product that has never been sold."""
    catalog_service.delete_product(data, product_id, cache=cache)
    return {"message": "Product deleted", "id": product_id}
