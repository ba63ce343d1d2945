"""Faker-based payloads for the storefront load test scenarios.

Field names match the API's Pydantic request schemas, and values stay
inside the domain's validation rules (positive prices, well-formed guest
session ids, complete shipping addresses).
"""

import random
import uuid

from faker import Faker

fake = Faker()

PAYMENT_METHODS = ["credit_card", "debit_card", "paypal", "stripe"]
SEARCH_WORDS = ["lamp", "desk", "chair", "mug", "shelf", "rug", "kettle", "vase"]


def user_id() -> str:
    return f"lt-user-{uuid.uuid4().hex[:10]}"


def guest_session_id() -> str:
    """Guest session ids: 8-128 characters of letters, digits, ``_ . -``."""
    return f"lt-session-{uuid.uuid4().hex}"


def valid_sku(prefix: str = "LT") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8].upper()}"


def category_data(parent_id: str | None = None) -> dict:
    return {
        "name": f"{fake.word().capitalize()} {uuid.uuid4().hex[:4]}",
        "parent_id": parent_id,
        "description": fake.sentence(nb_words=8),
        "sort_order": random.randint(0, 20),
    }


def product_data(category_id: str | None = None) -> dict:
    word = random.choice(SEARCH_WORDS).capitalize()
    return {
        "name": f"{fake.color_name()} {word} {uuid.uuid4().hex[:4]}",
        "sku": valid_sku("PROD"),
        "price": round(random.uniform(5.0, 250.0), 2),
        "description": fake.paragraph(nb_sentences=2),
        "stock": random.randint(50, 500),
        "category_id": category_id,
        "weight": round(random.uniform(0.1, 8.0), 2),
        "tags": random.sample(SEARCH_WORDS, 2),
    }


def address_data() -> dict:
    return {
        "recipient_name": fake.name()[:100],
        "phone": fake.numerify("+1-###-###-####"),
        "street": fake.street_address()[:255],
        "city": fake.city()[:100],
        "state": fake.state_abbr(),
        "postal_code": fake.zipcode()[:20],
        "country": "US",
    }


def checkout_data(user: str) -> dict:
    return {
        "user_id": user,
        "shipping_address": address_data(),
        "payment_method": random.choice(PAYMENT_METHODS),
        "tax_rate": random.choice([0.0, 0.05, 0.08, 0.2]),
    }


def coupon_data() -> dict:
    return {
        "code": f"LT{uuid.uuid4().hex[:8].upper()}",
        "name": fake.catch_phrase()[:100],
        "coupon_type": "percentage",
        "value": random.choice([5, 10, 15, 20]),
    }


def search_query() -> str:
    return random.choice(SEARCH_WORDS)
