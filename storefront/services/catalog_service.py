"""Categories and products: reads for listings, writes for catalog management."""
import logging
import uuid
from decimal import Decimal, InvalidOperation
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional

from storefront.core.audit import AuditLog
from storefront.core.cache import QueryCache
from storefront.core.exceptions import ReferentialConstraintError, StorefrontError, ValidationError
from storefront.db.data_service import DataService
from storefront.models import Category, Product
from storefront.services.stock import is_low_stock, profit_margin

logger = logging.getLogger(__name__)

IMAGE_BUCKET = "product-images"
ALLOWED_IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


# ==============================================================================
# CATEGORIES
# ==============================================================================

def create_category(data: DataService, name: Optional[str], description: Optional[str] = None) -> Category:
    if not name or not name.strip():
        raise ValidationError("Please enter a category name")
    category = data.insert("categories", {
        "name": name.strip(),
        "description": (description or "").strip() or None,
    })
    logger.info(f"[Catalog] Created category {category.id} '{category.name}'")
    return category


def list_categories(data: DataService) -> List[Dict[str, Any]]:
    """Newest first, each with the number of products it holds."""
    categories = data.fetch_all("categories", joins=["products"], order_by="created_at", descending=True)
    return [
        {
            "id": c.id,
            "name": c.name,
            "description": c.description,
            "product_count": len(c.products),
            "created_at": c.created_at,
        }
        for c in categories
    ]


def delete_category(data: DataService, category_id: str, cache: Optional[QueryCache] = None) -> None:
    category = data.get("categories", category_id, joins=["products"])
    if category.products:
        raise ReferentialConstraintError(
            f"Cannot delete category '{category.name}': {len(category.products)} products still use it"
        )
    data.delete("categories", category_id)
    if cache is not None:
        cache.invalidate("categories", "products")
    AuditLog.log_action("delete", "category", category_id, changes={"name": category.name})


# ==============================================================================
# PRODUCTS
# ==============================================================================

def _money(value, field: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number")
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative")
    return amount


def _quantity(value) -> int:
    try:
        qty = int(value)
        whole = qty == Decimal(str(value))
    except (TypeError, ValueError, OverflowError, InvalidOperation):
        raise ValidationError("Quantity must be a whole number")
    if not whole:
        raise ValidationError("Quantity must be a whole number")
    if qty < 0:
        raise ValidationError("Quantity cannot be negative")
    return qty


def product_row(product: Product) -> Dict[str, Any]:
    """Listing shape: product fields plus category name, margin and low-stock flag."""
    margin = profit_margin(product.cost_price, product.selling_price)
    return {
        "id": product.id,
        "name": product.name,
        "category_id": product.category_id,
        "category_name": product.category.name if product.category else None,
        "cost_price": product.cost_price,
        "selling_price": product.selling_price,
        "quantity": product.quantity,
        "description": product.description,
        "image_url": product.image_url,
        "margin": margin,
        "low_stock": is_low_stock(product.quantity),
        "created_at": product.created_at,
    }


def list_products(data: DataService) -> List[Dict[str, Any]]:
    products = data.fetch_all("products", joins=["category"], order_by="created_at", descending=True)
    return [product_row(p) for p in products]


def list_low_stock(data: DataService) -> List[Dict[str, Any]]:
    products = data.fetch_all("products", joins=["category"], order_by="quantity")
    return [product_row(p) for p in products if is_low_stock(p.quantity)]


def _upload_image(data: DataService, filename: Optional[str], content: Optional[bytes]) -> Optional[str]:
    """Best effort: any failure leaves the product without an image."""
    if not content:
        return None
    suffix = PurePosixPath(filename or "").suffix.lower()
    if suffix not in ALLOWED_IMAGE_SUFFIXES:
        logger.warning(f"[Catalog] Ignoring image '{filename}': unsupported type")
        return None
    try:
        return data.upload_binary(IMAGE_BUCKET, f"{uuid.uuid4()}{suffix}", content)
    except StorefrontError as e:
        logger.warning(f"[Catalog] Image upload failed, creating product without image: {e.message}")
        return None


def create_product(
    data: DataService,
    fields: Dict[str, Any],
    image_filename: Optional[str] = None,
    image_content: Optional[bytes] = None,
    cache: Optional[QueryCache] = None,
) -> Product:
    required = ("name", "category_id", "cost_price", "selling_price", "quantity")
    if any(fields.get(key) in (None, "") for key in required) or not str(fields["name"]).strip():
        raise ValidationError("Please fill in all required fields")

    record = {
        "name": str(fields["name"]).strip(),
        "category_id": fields["category_id"],
        "cost_price": _money(fields["cost_price"], "Cost price"),
        "selling_price": _money(fields["selling_price"], "Selling price"),
        "quantity": _quantity(fields["quantity"]),
        "description": (fields.get("description") or "").strip() or None,
    }
    data.get("categories", record["category_id"])

    record["image_url"] = _upload_image(data, image_filename, image_content)
    product = data.insert("products", record)
    if cache is not None:
        cache.invalidate("products", "categories")
    logger.info(f"[Catalog] Created product {product.id} '{product.name}' (qty {product.quantity})")
    return product


def update_product(data: DataService, product_id: str, changes: Dict[str, Any], cache: Optional[QueryCache] = None) -> Product:
    """Partial update. Setting ``quantity`` here is the direct stock edit path."""
    clean: Dict[str, Any] = {}
    for key, value in changes.items():
        if value is None:
            continue
        if key == "name":
            if not str(value).strip():
                raise ValidationError("Product name cannot be empty")
            clean[key] = str(value).strip()
        elif key in ("cost_price", "selling_price"):
            clean[key] = _money(value, key.replace("_", " ").capitalize())
        elif key == "quantity":
            clean[key] = _quantity(value)
        elif key == "category_id":
            data.get("categories", value)
            clean[key] = value
        elif key == "description":
            clean[key] = str(value).strip() or None
        else:
            raise ValidationError(f"Field '{key}' cannot be updated")

    product = data.update("products", product_id, clean)
    if cache is not None:
        cache.invalidate("products", "categories")
    AuditLog.log_action("update", "product", product_id, changes={k: str(v) for k, v in clean.items()})
    return product


def delete_product(data: DataService, product_id: str, cache: Optional[QueryCache] = None) -> None:
    """Refused while any sale line references the product."""
    product = data.get("products", product_id, joins=["sale_items"])
    if product.sale_items:
        raise ReferentialConstraintError(
            f"Cannot delete '{product.name}': it appears on {len(product.sale_items)} sale line(s)"
        )
    name = product.name
    data.delete("products", product_id)
    if cache is not None:
        cache.invalidate("products", "categories")
    AuditLog.log_action("delete", "product", product_id, changes={"name": name})
