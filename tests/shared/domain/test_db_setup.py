from contextlib import nullcontext
from types import SimpleNamespace
from unittest.mock import MagicMock

from storefront.utils.db import setup_db


class _RecordingRepo:
    def __init__(self):
        self.touched = False

    @property
    def _dao(self):
        self.touched = True
        return object()


def _domain(outbox_repos):
    sql = SimpleNamespace(conn_info={"provider": "sqlite", "database_uri": "sqlite://"}, _metadata=MagicMock())
    memory = SimpleNamespace(conn_info={"provider": "memory"}, _metadata=MagicMock())
    domain = MagicMock()
    domain.domain_context.return_value = nullcontext()
    domain.providers = {"default": sql, "cache": memory}
    domain.registry = SimpleNamespace(aggregates={}, entities={}, projections={})
    domain._outbox_repos = outbox_repos
    return domain, sql, memory


def test_outbox_table_is_registered_before_create():
    outbox = _RecordingRepo()
    domain, sql, memory = _domain({"default": outbox})

    setup_db(domain)

    assert outbox.touched
    sql._metadata.create_all.assert_called_once()
    memory._metadata.create_all.assert_not_called()


def test_domain_without_outbox():
    domain, sql, _ = _domain({})

    setup_db(domain)

    sql._metadata.create_all.assert_called_once()
