from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.customer import Customer
from storefront.models.sale import Sale, SaleItem, PaymentMethod
from storefront.models.payment import Payment

__all__ = ["Category", "Product", "Customer", "Sale", "SaleItem", "PaymentMethod", "Payment"]
