"""Readable failure messages for storefront API responses.

Three body shapes come back from the API:

- request validation (422): {"detail": [{"loc": [...], "msg": "..."}]}
- HTTP errors raised by FastAPI itself: {"detail": "Not Found"}
- domain errors (400/404/409): {"error": "msg"} or {"error": {"field": ["msg"]}}
"""

MAX_DETAIL = 300


def _flatten(messages) -> str:
    if isinstance(messages, list):
        return ", ".join(str(m) for m in messages)
    return str(messages)


def error_detail(response) -> str:
    """Compact one-line description of an error response body."""
    try:
        body = response.json()
    except ValueError:
        return (getattr(response, "text", "") or "(empty response body)")[:MAX_DETAIL]

    if not isinstance(body, dict):
        return str(body)[:MAX_DETAIL]

    detail = body.get("detail")
    if isinstance(detail, list):
        return " | ".join(
            f"{'.'.join(str(p) for p in err.get('loc', [])[1:])}: {err.get('msg', err)}" for err in detail
        )
    if detail is not None:
        return str(detail)

    error = body.get("error")
    if isinstance(error, dict):
        return " | ".join(f"{field}: {_flatten(messages)}" for field, messages in error.items())
    if error is not None:
        return str(error)

    return str(body)[:MAX_DETAIL]


def failure(response, action: str) -> str:
    return f"{action} failed: {response.status_code} {error_detail(response)}"
