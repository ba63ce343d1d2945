"""Storefront load testing: Locust entry point.

Usage:
    # All user classes (web UI):
    locust -f loadtests/locustfile.py --host http://localhost:8000

    # Mixed workload only, headless:
    locust -f loadtests/locustfile.py MixedWorkloadUser --headless \
           -u 50 -r 5 -t 300s --csv=results/loadtest --host http://localhost:8000
"""

import time

import structlog
from locust import events

from loadtests.helpers.response import error_detail
from loadtests.scenarios.catalogue import CatalogueUser  # noqa: F401
from loadtests.scenarios.mixed import MixedWorkloadUser  # noqa: F401
from loadtests.scenarios.shopping import ShopperUser  # noqa: F401

logger = structlog.get_logger("loadtest")


@events.request.add_listener
def on_request(request_type, name, response, exception, **_kw):
    """Log the API's error body for every failed request."""
    if exception:
        logger.error("Request raised", method=request_type, endpoint=name, error=str(exception))
    elif response is not None and response.status_code >= 400:
        logger.error(
            "Request failed",
            method=request_type,
            endpoint=name,
            status=response.status_code,
            detail=error_detail(response),
        )


@events.test_start.add_listener
def on_test_start(environment, **_kwargs):
    print(f"\n[LOADTEST] Started at {time.strftime('%H:%M:%S')}")
    print(f"[LOADTEST] Target host: {environment.host}\n")


@events.test_stop.add_listener
def on_test_stop(environment, **_kwargs):
    stats = environment.stats.total
    print(f"\n[LOADTEST] Stopped at {time.strftime('%H:%M:%S')}")
    print(f"[LOADTEST] {stats.num_requests} requests, {stats.num_failures} failures")
    print(f"[LOADTEST] Median {stats.median_response_time} ms, p95 {stats.get_response_time_percentile(0.95)} ms\n")
