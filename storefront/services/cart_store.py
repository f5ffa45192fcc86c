# storefront/services/cart_store.py
import time
from dataclasses import dataclass

from pydantic import ValidationError as SchemaError

from storefront.domain.errors import ValidationError
from storefront.domain.pricing import DEFAULT_POLICY, PriceBreakdown, PricingPolicy, calculate_totals
from storefront.domain.schemas import AppliedCoupon, Cart, LineItem
from storefront.repos.cart_storage import CartStorage, CartStorageError, dump_cart, parse_cart
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


# =====================================================
# ACTIONS
# =====================================================
@dataclass(frozen=True)
class AddItem:
    item: LineItem
    quantity: int = 1


@dataclass(frozen=True)
class RemoveItem:
    item_id: str


@dataclass(frozen=True)
class UpdateQuantity:
    item_id: str
    quantity: int


@dataclass(frozen=True)
class ApplyCoupon:
    coupon: AppliedCoupon


@dataclass(frozen=True)
class RemoveCoupon:
    pass


@dataclass(frozen=True)
class ClearCart:
    pass


@dataclass(frozen=True)
class LoadCart:
    cart: Cart


CartAction = AddItem | RemoveItem | UpdateQuantity | ApplyCoupon | RemoveCoupon | ClearCart | LoadCart


# =====================================================
# REDUCER
# =====================================================
def _same_line(existing: LineItem, new: LineItem) -> bool:
    if new.id is not None and existing.id == new.id:
        return True
    #pydantic models compare field by field
    return existing.product_id == new.product_id and existing.variant == new.variant


def _new_line_id(product_id: str, items: list[LineItem]) -> str:
    taken = {i.id for i in items}
    line_id = f"{product_id}-{int(time.time() * 1000)}"
    suffix = 1
    while line_id in taken:
        line_id = f"{product_id}-{int(time.time() * 1000)}-{suffix}"
        suffix += 1
    return line_id


def _add_item(cart: Cart, item: LineItem, quantity: int) -> Cart:
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1", reason="invalid_quantity")

    for index, existing in enumerate(cart.items):
        if _same_line(existing, item):
            items = list(cart.items)
            items[index] = existing.model_copy(update={"quantity": existing.quantity + quantity})
            return cart.model_copy(update={"items": items})

    line_id = item.id or _new_line_id(item.product_id, cart.items)
    line = item.model_copy(update={"id": line_id, "quantity": quantity})
    return cart.model_copy(update={"items": [*cart.items, line]})


def _remove_item(cart: Cart, item_id: str) -> Cart:
    return cart.model_copy(update={"items": [i for i in cart.items if i.id != item_id]})


def reduce(cart: Cart, action: CartAction) -> Cart:
    """Pure transition function, returns a new Cart and never mutates ``cart``."""
    if isinstance(action, AddItem):
        return _add_item(cart, action.item, action.quantity)

    if isinstance(action, RemoveItem):
        return _remove_item(cart, action.item_id)

    if isinstance(action, UpdateQuantity):
        if action.quantity <= 0:
            return _remove_item(cart, action.item_id)
        items = [
            i.model_copy(update={"quantity": action.quantity}) if i.id == action.item_id else i
            for i in cart.items
        ]
        return cart.model_copy(update={"items": items})

    if isinstance(action, ApplyCoupon):
        #only one coupon at a time
        return cart.model_copy(update={"coupon": action.coupon})

    if isinstance(action, RemoveCoupon):
        return cart.model_copy(update={"coupon": None})

    if isinstance(action, ClearCart):
        return Cart()

    if isinstance(action, LoadCart):
        return action.cart

    raise TypeError(f"Unknown cart action: {action!r}")


# =====================================================
# STORE
# =====================================================
class CartStore:
    """
    Cart of a single client session.

    All changes go through dispatch(): the reducer computes the next state
    and the state is written to storage right away. Pricing is never
    cached, summary() prices the current items and coupon every time.
    """

    def __init__(self, storage: CartStorage, policy: PricingPolicy = DEFAULT_POLICY):
        self.storage = storage
        self.policy = policy
        self.cart = Cart()
        self.load()

    def load(self) -> Cart:
        try:
            payload = self.storage.load()
        except CartStorageError as e:
            logger.error(f"Error loading cart from storage: {e}")
            payload = None

        if payload:
            try:
                self.cart = reduce(self.cart, LoadCart(parse_cart(payload)))
            except SchemaError as e:
                logger.error(f"Discarding unreadable persisted cart: {e}")
                self.cart = Cart()

        return self.cart

    def dispatch(self, action: CartAction) -> Cart:
        self.cart = reduce(self.cart, action)
        try:
            self.storage.save(dump_cart(self.cart))
        except CartStorageError as e:
            #state in memory stays valid, next mutation retries the write
            logger.error(f"Error saving cart to storage: {e}")
        return self.cart

    # ---------------- commands ----------------
    def add_item(self, item: LineItem, quantity: int = 1) -> Cart:
        return self.dispatch(AddItem(item, quantity))

    def remove_item(self, item_id: str) -> Cart:
        return self.dispatch(RemoveItem(item_id))

    def update_quantity(self, item_id: str, quantity: int) -> Cart:
        return self.dispatch(UpdateQuantity(item_id, quantity))

    def apply_coupon(self, coupon: AppliedCoupon) -> Cart:
        return self.dispatch(ApplyCoupon(coupon))

    def remove_coupon(self) -> Cart:
        return self.dispatch(RemoveCoupon())

    def clear_cart(self) -> Cart:
        return self.dispatch(ClearCart())

    # ---------------- queries ----------------
    @property
    def item_count(self) -> int:
        return self.cart.item_count

    @property
    def total(self) -> int:
        return self.cart.total

    def summary(self) -> PriceBreakdown:
        return calculate_totals(self.cart.items, self.cart.coupon, self.policy)
