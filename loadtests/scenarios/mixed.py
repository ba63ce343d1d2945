"""Mixed storefront workload.

Weights lean on reads, the way storefront traffic does: most users browse,
fewer fill carts, and a small share of merchandisers edit the catalogue.
This is the scenario to use for a load baseline.
"""

from locust import HttpUser, between

from loadtests.scenarios.catalogue import BrowseJourney, CatalogueBuildJourney
from loadtests.scenarios.shopping import (
    CashOnDeliveryJourney,
    CouponCheckoutJourney,
    GuestCheckoutJourney,
    WishlistJourney,
)


class MixedWorkloadUser(HttpUser):
    wait_time = between(1, 3)
    tasks = {
        BrowseJourney: 10,
        WishlistJourney: 4,
        GuestCheckoutJourney: 4,
        CashOnDeliveryJourney: 2,
        CouponCheckoutJourney: 1,
        CatalogueBuildJourney: 1,
    }
