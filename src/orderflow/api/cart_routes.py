"""Cart routes — every operation acts on the caller's own cart."""

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from protean.utils.globals import current_domain

from orderflow.access.guard import Principal
from orderflow.api.auth import get_current_principal
from orderflow.api.envelope import success
from orderflow.api.schemas import AddCartItemRequest, SetQuantityRequest
from orderflow.api.serializers import cart_view
from orderflow.cart.cart import Cart
from orderflow.cart.store import CartStore
from orderflow.inventory.product import Product

cart_router = APIRouter(prefix="/cart", tags=["cart"])


def get_cart_store() -> CartStore:
    return CartStore()


def _view(cart: Cart) -> dict:
    repo = current_domain.repository_for(Product)
    products = {str(item.product_id): repo.find(item.product_id) for item in cart.items}
    return cart_view(cart, products)


@cart_router.post("")
def add_item(
    body: AddCartItemRequest,
    principal: Principal = Depends(get_current_principal),
    store: CartStore = Depends(get_cart_store),
):
    cart = store.add_item(principal.user_id, body.product_id, body.quantity)
    return success(_view(cart), "Item added to cart")


@cart_router.get("")
def view_cart(
    principal: Principal = Depends(get_current_principal),
    store: CartStore = Depends(get_cart_store),
):
    return success(_view(store.load(principal.user_id)), "Cart retrieved")


@cart_router.put("/{product_id}")
def set_quantity(
    product_id: str,
    body: SetQuantityRequest,
    principal: Principal = Depends(get_current_principal),
    store: CartStore = Depends(get_cart_store),
):
    cart = store.set_quantity(principal.user_id, product_id, body.quantity)
    return success(_view(cart), "Cart item updated")


@cart_router.delete("/{product_id}")
def remove_item(
    product_id: str,
    principal: Principal = Depends(get_current_principal),
    store: CartStore = Depends(get_cart_store),
):
    cart = store.remove_item(principal.user_id, product_id)
    return success(_view(cart), "Item removed from cart")


@cart_router.delete("", status_code=204)
def clear_cart(
    principal: Principal = Depends(get_current_principal),
    store: CartStore = Depends(get_cart_store),
):
    store.clear(principal.user_id)
    return Response(status_code=204)
