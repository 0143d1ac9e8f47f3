"""Console log formatting and entity-bound loggers."""

import logging
import unittest

from riceops.utils.logging import ConsoleFormatter, entity_context, get_entity_logger


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("riceops.store.transporter", logging.INFO, __file__, 1, "Updated", None, None)
    record.__dict__.update(extra)
    return record


def test_formatter_renders_entity_tag():
    formatter = ConsoleFormatter(use_colors=False, include_timestamp=False)

    line = formatter.format(make_record(entity_kind="transporter", entity_id="12", operation="update"))

    assert line.startswith("INFO     [store.transporter   ]")
    assert "[transporter:12 update] Updated" in line


def test_formatter_without_context_has_no_tag():
    formatter = ConsoleFormatter(use_colors=False, include_timestamp=False)

    assert formatter.format(make_record()).endswith("] Updated")
    assert ConsoleFormatter.format_context(make_record(entity_id="7")) == "[?:7]"


def test_entity_context_drops_empty_values():
    assert entity_context("transporter", None, "") == {"entity_kind": "transporter"}
    assert entity_context(entity_id=0) == {"entity_id": 0}


class EntityLoggerTest(unittest.TestCase):
    def test_call_extras_merge_over_bound_kind(self) -> None:
        logger = get_entity_logger("store.inwardSlipPass", "inwardSlipPass")

        with self.assertLogs("riceops.store.inwardSlipPass", level="INFO") as logs:
            logger.info("Deleted", extra=entity_context(entity_id="S-9"))

        record = logs.records[0]
        self.assertEqual(record.entity_kind, "inwardSlipPass")
        self.assertEqual(record.entity_id, "S-9")
