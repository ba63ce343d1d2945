"""Tests for the Product aggregate."""

import pytest
from protean.exceptions import ValidationError

from storefront.catalogue.product.events import ProductDeactivated, ProductStockChanged
from storefront.catalogue.product.product import Product, ProductStatus
from storefront.catalogue.shared.slug import slugify
from storefront.shared.errors import InsufficientStockError


def _product(**overrides):
    fields = {"name": "Blue Ceramic Mug", "sku": "mug-001", "price": 12.5, "stock": 10}
    fields.update(overrides)
    return Product.create(**fields)


class TestProductCreation:
    def test_sku_is_upper_cased(self):
        assert _product().sku == "MUG-001"

    def test_slug_from_name(self):
        assert _product().slug == "blue-ceramic-mug"

    def test_tags_stored_as_json(self):
        product = _product(tags=["kitchen", "gift"])
        assert product.tag_list == ["kitchen", "gift"]

    def test_active_by_default(self):
        product = _product()
        assert product.status == ProductStatus.ACTIVE.value
        assert product.is_available()

    def test_price_must_be_positive(self):
        with pytest.raises(ValidationError):
            _product(price=0)

    def test_compare_price_must_exceed_price(self):
        with pytest.raises(ValidationError):
            _product(compare_price=10.0)

    def test_unsupported_currency(self):
        with pytest.raises(ValidationError):
            _product(currency="ABC")


class TestSlugify:
    @pytest.mark.parametrize(
        "text, slug",
        [("Hello World", "hello-world"), ("  Café & Bar!! ", "caf-bar"), ("", "")],
    )
    def test_slugify(self, text, slug):
        assert slugify(text) == slug


class TestStock:
    def test_reduce_stock(self):
        product = _product(stock=5)
        product.reduce_stock(3)
        assert product.stock == 2
        event = product._events[-1]
        assert isinstance(event, ProductStockChanged)
        assert (event.previous_stock, event.new_stock) == (5, 2)

    def test_cannot_reduce_below_zero(self):
        with pytest.raises(InsufficientStockError):
            _product(stock=2).reduce_stock(3)

    def test_restore_stock(self):
        product = _product(stock=2)
        product.restore_stock(3)
        assert product.stock == 5

    def test_negative_stock_rejected(self):
        with pytest.raises(ValidationError):
            _product().set_stock(-1)

    def test_out_of_stock_is_not_available(self):
        assert not _product(stock=0).is_available()


class TestPriceAndLifecycle:
    def test_change_price_rounds(self):
        product = _product()
        product.change_price(9.999)
        assert product.price == 10.0

    def test_change_price_rejects_zero(self):
        with pytest.raises(ValidationError):
            _product().change_price(0)

    def test_deactivate_and_reactivate(self):
        product = _product()
        product.deactivate()
        assert product.status == ProductStatus.INACTIVE.value
        assert isinstance(product._events[-1], ProductDeactivated)
        product.activate()
        assert product.is_available()

    def test_discontinued_cannot_come_back(self):
        product = _product()
        product.discontinue()
        with pytest.raises(ValidationError):
            product.activate()

    def test_activate_active_product_fails(self):
        with pytest.raises(ValidationError):
            _product().activate()
