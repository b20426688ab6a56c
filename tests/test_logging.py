import logging

from catalog_admin.core.logging import configure_logging


def test_configure_logging_is_idempotent() -> None:
    name = "catalog_admin.tests.logging"

    logger = configure_logging("warning", name=name)
    configure_logging("debug", name=name)

    assert logger is logging.getLogger(name)
    assert logger.level == logging.DEBUG
    assert len([h for h in logger.handlers if getattr(h, "_catalog_admin", False)]) == 1
