"""Shopping load test scenarios.

Each journey seeds its own products so runs do not depend on catalogue
state, then walks a shopper through carts, checkout and orders. Stock
holds, reservation confirmation and the cleanup sweeps all sit on these
paths.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import (
    address_data,
    checkout_data,
    coupon_data,
    guest_session_id,
    product_data,
    user_id,
)
from loadtests.helpers.response import failure
from loadtests.helpers.state import ShopperState


class _ShopperJourney(SequentialTaskSet):
    def on_start(self):
        self.state = ShopperState(user_id=user_id(), session_id=guest_session_id())

    def seed_products(self, count=2):
        for _ in range(count):
            with self.client.post(
                "/products", json=product_data(), catch_response=True, name="POST /products"
            ) as resp:
                if resp.status_code == 201:
                    self.state.product_ids.append(resp.json()["id"])
                else:
                    resp.failure(failure(resp, "Seed product"))
        if not self.state.product_ids:
            self.interrupt()

    def add_to_cart(self, product_id, **owner):
        body = {"product_id": product_id, "quantity": random.randint(1, 3), **owner}
        with self.client.post("/cart/items", json=body, catch_response=True, name="POST /cart/items") as resp:
            if resp.status_code != 200:
                resp.failure(failure(resp, "Add to cart"))


class GuestCheckoutJourney(_ShopperJourney):
    """Guest fills a cart -> signs in (merge) -> checks out -> pays."""

    @task
    def seed(self):
        self.seed_products()

    @task
    def browse_as_guest(self):
        for product_id in self.state.product_ids:
            self.add_to_cart(product_id, session_id=self.state.session_id)

    @task
    def sign_in(self):
        with self.client.post(
            "/cart/merge",
            json={"user_id": self.state.user_id, "session_id": self.state.session_id, "strategy": "auto"},
            catch_response=True,
            name="POST /cart/merge",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(failure(resp, "Merge guest cart"))
                self.interrupt()

    @task
    def open_checkout(self):
        with self.client.post(
            "/checkout/sessions",
            json=checkout_data(self.state.user_id),
            catch_response=True,
            name="POST /checkout/sessions",
        ) as resp:
            if resp.status_code == 201:
                self.state.checkout_session_id = resp.json()["session_id"]
            else:
                resp.failure(failure(resp, "Open checkout"))
                self.interrupt()

    @task
    def complete(self):
        with self.client.post(
            f"/checkout/sessions/{self.state.checkout_session_id}/complete",
            json={"payment_id": f"pay_{self.state.checkout_session_id}"},
            catch_response=True,
            name="POST /checkout/sessions/{id}/complete",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_id = resp.json()["order_id"]
            else:
                resp.failure(failure(resp, "Complete checkout"))

    @task
    def view_orders(self):
        self.client.get("/orders", params={"user_id": self.state.user_id}, name="GET /orders")

    @task
    def done(self):
        self.interrupt()


class CouponCheckoutJourney(_ShopperJourney):
    """Create a coupon -> fill a cart -> validate the code -> check out with it -> cancel."""

    @task
    def seed(self):
        self.seed_products(count=1)
        payload = coupon_data()
        with self.client.post("/coupons", json=payload, catch_response=True, name="POST /coupons") as resp:
            if resp.status_code == 201:
                self.state.coupon_code = payload["code"]
            else:
                resp.failure(failure(resp, "Create coupon"))

    @task
    def fill_cart(self):
        self.add_to_cart(self.state.product_ids[0], user_id=self.state.user_id)

    @task
    def validate_coupon(self):
        if not self.state.coupon_code:
            return
        self.client.post(
            "/coupons/validate",
            json={"code": self.state.coupon_code, "user_id": self.state.user_id, "order_total": 100},
            name="POST /coupons/validate",
        )

    @task
    def checkout(self):
        body = checkout_data(self.state.user_id)
        body["coupon_code"] = self.state.coupon_code
        with self.client.post(
            "/checkout/sessions", json=body, catch_response=True, name="POST /checkout/sessions"
        ) as resp:
            if resp.status_code != 201:
                resp.failure(failure(resp, "Open checkout with coupon"))
                self.interrupt()
                return
            session_id = resp.json()["session_id"]

        with self.client.post(
            f"/checkout/sessions/{session_id}/complete",
            json={},
            catch_response=True,
            name="POST /checkout/sessions/{id}/complete",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_id = resp.json()["order_id"]
            else:
                resp.failure(failure(resp, "Complete checkout with coupon"))
                self.interrupt()

    @task
    def cancel_order(self):
        with self.client.post(
            f"/orders/{self.state.order_id}/cancel",
            json={"reason": "Load test cancellation"},
            catch_response=True,
            name="POST /orders/{id}/cancel",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(failure(resp, "Cancel order"))

    @task
    def done(self):
        self.interrupt()


class CashOnDeliveryJourney(_ShopperJourney):
    """Fill a cart -> place a cash order -> read it back."""

    @task
    def seed(self):
        self.seed_products(count=1)

    @task
    def fill_cart(self):
        self.add_to_cart(self.state.product_ids[0], user_id=self.state.user_id)

    @task
    def place(self):
        with self.client.post(
            "/checkout/cod",
            json={"user_id": self.state.user_id, "shipping_address": address_data()},
            catch_response=True,
            name="POST /checkout/cod",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_id = resp.json()["order_id"]
            else:
                resp.failure(failure(resp, "Cash order"))
                self.interrupt()

    @task
    def read_back(self):
        self.client.get(f"/orders/{self.state.order_id}", name="GET /orders/{id}")

    @task
    def done(self):
        self.interrupt()


class WishlistJourney(_ShopperJourney):
    """Save products -> list them -> move one to the cart -> clear the list."""

    @task
    def seed(self):
        self.seed_products()

    @task
    def save(self):
        for product_id in self.state.product_ids:
            with self.client.post(
                f"/wishlist/{self.state.user_id}/items",
                json={"product_id": product_id},
                catch_response=True,
                name="POST /wishlist/{user}/items",
            ) as resp:
                if resp.status_code != 201:
                    resp.failure(failure(resp, "Add to wishlist"))

    @task
    def list_items(self):
        self.client.get(f"/wishlist/{self.state.user_id}", name="GET /wishlist/{user}")

    @task
    def move_to_cart(self):
        self.add_to_cart(self.state.product_ids[0], user_id=self.state.user_id)

    @task
    def clear(self):
        self.client.delete(f"/wishlist/{self.state.user_id}", name="DELETE /wishlist/{user}")

    @task
    def done(self):
        self.interrupt()


class ShopperUser(HttpUser):
    wait_time = between(1, 3)
    tasks = {
        GuestCheckoutJourney: 4,
        WishlistJourney: 3,
        CashOnDeliveryJourney: 2,
        CouponCheckoutJourney: 1,
    }
