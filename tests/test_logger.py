import logging

from askitypes.core.logger import (
    _SchemaFilter,
    configure_root_logger,
    current_schema_name,
    get_logger,
    push_schema_name,
    reset_schema_name,
)
from askitypes.loader import load_catalog


def test_schema_name_context_round_trip():
    assert current_schema_name() == "-"

    token = push_schema_name("billing")
    assert current_schema_name() == "billing"

    reset_schema_name(token)
    assert current_schema_name() == "-"


def test_empty_schema_name_is_not_pushed():
    assert push_schema_name(None) is None
    assert push_schema_name("") is None
    reset_schema_name(None)
    assert current_schema_name() == "-"


def test_filter_injects_schema_name():
    record = logging.LogRecord("askitypes.test", logging.INFO, __file__, 1, "msg", None, None)
    token = push_schema_name("orders")
    try:
        assert _SchemaFilter().filter(record)
    finally:
        reset_schema_name(token)

    assert record.schema == "orders"


def test_get_logger_adds_filter_once():
    logger = get_logger("askitypes.test_logger")
    get_logger("askitypes.test_logger")

    assert sum(isinstance(f, _SchemaFilter) for f in logger.filters) == 1


def test_configure_root_logger_is_idempotent():
    root = logging.getLogger()

    configure_root_logger("DEBUG")
    count = len(root.handlers)
    configure_root_logger("WARNING")

    assert len(root.handlers) == count
    assert logging.getLogger("askitypes").level == logging.WARNING


def test_catalog_build_logs_carry_schema_name(caplog):
    caplog.set_level(logging.INFO, logger="askitypes")

    load_catalog(data={"schema_name": "inventory", "types": [{"kind": "unit_struct", "name": "Sku"}]})

    registered = [r for r in caplog.records if r.name == "askitypes.catalog.registry"]
    assert registered
    assert all(r.schema == "inventory" for r in registered)
    assert "Registered 1 type(s)" in registered[-1].getMessage()
