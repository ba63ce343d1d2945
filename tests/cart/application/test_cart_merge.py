"""Application tests for folding a guest cart into a user's cart at login."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from storefront.cart.cart import CartStatus, ShoppingCart
from storefront.cart.items import AddToCart
from storefront.cart.merge import MergeGuestCart, check_merge_conflict
from storefront.catalogue.product.product import Product
from storefront.inventory.reservation import StockReservation

SESSION = "guest-session-01"
USER = "user-1"


def _add(product, quantity, **owner):
    return current_domain.process(AddToCart(product_id=product.id, quantity=quantity, **owner), asynchronous=False)


def _merge(strategy="merge"):
    return current_domain.process(
        MergeGuestCart(user_id=USER, session_id=SESSION, strategy=strategy),
        asynchronous=False,
    )


def _cart(cart_id):
    return current_domain.repository_for(ShoppingCart).get(cart_id)


class TestMergeWithoutUserCart:
    def test_guest_cart_changes_owner(self, make_product):
        product = make_product()
        guest_cart_id = _add(product, 2, session_id=SESSION)

        cart_id = _merge()

        assert cart_id == guest_cart_id
        cart = _cart(cart_id)
        assert str(cart.user_id) == USER
        assert cart.session_id is None

    def test_holds_follow_the_cart(self, make_product):
        product = make_product()
        _add(product, 2, session_id=SESSION)
        _merge()

        holds = current_domain.repository_for(StockReservation).for_owner(user_id=USER)
        assert len(holds) == 1
        assert holds[0].session_id is None

    def test_no_guest_cart_returns_user_cart(self):
        cart_id = _merge()
        assert str(_cart(cart_id).user_id) == USER


class TestMergeStrategies:
    @pytest.fixture
    def carts(self, make_product):
        shared = make_product(price=10.0, stock=50)
        guest_only = make_product(price=5.0, stock=50)
        user_cart_id = _add(shared, 2, user_id=USER)
        guest_cart_id = _add(shared, 3, session_id=SESSION)
        _add(guest_only, 1, session_id=SESSION)
        return {"shared": shared, "guest_only": guest_only, "user": user_cart_id, "guest": guest_cart_id}

    def test_merge_adds_quantities(self, carts):
        cart_id = _merge("merge")

        assert cart_id == carts["user"]
        cart = _cart(cart_id)
        assert cart.quantity_of(carts["shared"].id) == 5
        assert cart.quantity_of(carts["guest_only"].id) == 1
        assert _cart(carts["guest"]).status == CartStatus.CONVERTED.value

    def test_auto_behaves_like_merge(self, carts):
        cart = _cart(_merge("auto"))
        assert cart.quantity_of(carts["shared"].id) == 5

    def test_merged_holds_match_user_lines(self, carts):
        _merge("merge")
        repo = current_domain.repository_for(StockReservation)
        assert repo.for_owner(session_id=SESSION) == []
        shared_hold = repo.for_owner(user_id=USER, product_id=carts["shared"].id)
        assert [h.quantity for h in shared_hold] == [5]

    def test_replace_uses_guest_lines(self, carts):
        cart = _cart(_merge("replace"))
        assert cart.quantity_of(carts["shared"].id) == 3
        assert cart.quantity_of(carts["guest_only"].id) == 1

    def test_keep_user_discards_guest_cart(self, carts):
        cart = _cart(_merge("keep_user"))
        assert cart.quantity_of(carts["shared"].id) == 2
        assert cart.get_item(carts["guest_only"].id) is None
        assert _cart(carts["guest"]).status == CartStatus.ABANDONED.value

    def test_unknown_strategy_is_rejected(self, carts):
        with pytest.raises(ValidationError):
            _merge("shuffle")


class TestMergeSkipsUnavailable:
    def test_withdrawn_product_is_skipped(self, make_product):
        kept = make_product()
        withdrawn = make_product()
        _add(kept, 1, user_id=USER)
        _add(withdrawn, 2, session_id=SESSION)

        repo = current_domain.repository_for(Product)
        product = repo.get(withdrawn.id)
        product.deactivate()
        repo.add(product)

        cart = _cart(_merge())
        assert cart.get_item(withdrawn.id) is None
        assert cart.quantity_of(kept.id) == 1

    def test_guest_hold_is_released_before_user_takes_it(self, make_product):
        kept = make_product()
        scarce = make_product(stock=1)
        _add(kept, 1, user_id=USER)
        _add(scarce, 1, session_id=SESSION)

        cart = _cart(_merge())
        assert cart.quantity_of(scarce.id) == 1

    def test_line_capped_at_available_stock(self, make_product):
        product = make_product(stock=6)
        _add(product, 4, user_id=USER)
        _add(product, 2, session_id=SESSION)

        repo = current_domain.repository_for(Product)
        recounted = repo.get(product.id)
        recounted.set_stock(5)
        repo.add(recounted)

        cart = _cart(_merge())
        assert cart.quantity_of(product.id) == 5


class TestMergeConflictPreview:
    def test_no_guest_cart(self):
        conflict = check_merge_conflict(USER, SESSION)
        assert not conflict.guest_cart_exists
        assert not conflict.has_conflict

    def test_guest_only(self, make_product):
        _add(make_product(), 1, session_id=SESSION)
        conflict = check_merge_conflict(USER, SESSION)
        assert conflict.guest_cart_exists
        assert not conflict.user_cart_exists
        assert not conflict.has_conflict

    def test_reports_overlapping_products(self, make_product):
        product = make_product(price=10.0)
        _add(product, 2, user_id=USER)
        _add(product, 1, session_id=SESSION)

        conflict = check_merge_conflict(USER, SESSION)

        assert conflict.has_conflict
        [item] = conflict.conflicting_items
        assert item.product_id == str(product.id)
        assert (item.user_quantity, item.guest_quantity) == (2, 1)
        assert item.price_difference == 0.0
        assert conflict.recommendations
