# tests/utils/test_logging.py
import logging

from catalogue.utils.logging import CatalogueLogger, ContextFormatter, LOG_FORMAT


def make_record(**extra):
    record = logging.makeLogRecord({"name": "service", "levelname": "INFO", "msg": "Stored catalogue"})
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_reserved_extra_keys_are_renamed():
    logger = CatalogueLogger("test.sanitize")

    sanitized = logger._sanitize_extra({"name": "Spring", "module": "x", "catalogue_id": 3})

    assert sanitized == {"extra_name": "Spring", "extra_module": "x", "catalogue_id": 3}
    assert logger._sanitize_extra(None) is None


def test_formatter_appends_extra_fields():
    line = ContextFormatter(LOG_FORMAT).format(make_record(page_count=10, catalogue_id=3))

    assert line.endswith("Stored catalogue | catalogue_id=3 page_count=10")


def test_formatter_without_extra_fields():
    line = ContextFormatter(LOG_FORMAT).format(make_record())

    assert line.endswith("Stored catalogue")
    assert "|" not in line


def test_extra_reaches_handlers(caplog):
    logger = CatalogueLogger("test.extra")

    with caplog.at_level(logging.INFO, logger="test.extra"):
        logger.info("Order notification sent", extra={"order_id": 7, "name": "Ada"})

    record = caplog.records[-1]
    assert record.order_id == 7
    assert record.extra_name == "Ada"
