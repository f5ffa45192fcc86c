#import all models so SQLAlchemy registers them in Base.metadata

from storefront.data.models.category import CategoryModel
from storefront.data.models.product import ProductModel
from storefront.data.models.variant import VariantModel
from storefront.data.models.coupon import CouponModel
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel

__all__ = [
    "CategoryModel",
    "ProductModel",
    "VariantModel",
    "CouponModel",
    "OrderModel",
    "OrderItemModel",
]
