from __future__ import annotations

import logging

from sectionhash.logging import configure_logging


def test_configure_logging_replaces_its_handler():
    root = logging.getLogger()
    original_level = root.level
    try:
        configure_logging("debug")
        configure_logging(logging.INFO, json_format=True)
        ours = [h for h in root.handlers if h.get_name() == "sectionhash"]
        assert len(ours) == 1
        assert root.level == logging.INFO
    finally:
        for handler in [h for h in root.handlers if h.get_name() == "sectionhash"]:
            root.removeHandler(handler)
        root.setLevel(original_level)
