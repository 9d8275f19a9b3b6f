"""Tests for logging_config."""

import logging

import logging_config


def test_setup_logging_installs_handlers_once(monkeypatch) -> None:
    root = logging.getLogger()
    monkeypatch.setattr(logging_config, "_configured", False)
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)

    logging_config.setup_logging("DEBUG")
    logging_config.setup_logging("WARNING")

    assert len(root.handlers) == 1
    assert root.level == logging.WARNING
    assert not hasattr(root, "_relaychat_configured")
