"""Tests for logging setup."""

import logging

import pytest

import config


@pytest.fixture
def bare_root(monkeypatch):
    """Root logger with no handlers, restored after the test."""
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)
    return root


def test_setup_logging_console_only_without_log_file(bare_root, monkeypatch):
    monkeypatch.setattr(config, "LOG_FILE", "")

    config.setup_logging(logging.INFO)

    assert [type(h) for h in bare_root.handlers] == [logging.StreamHandler]


def test_setup_logging_adds_file_handler(bare_root, monkeypatch, tmp_path):
    monkeypatch.setattr(config, "LOG_FILE", str(tmp_path / "gateway.log"))

    config.setup_logging(logging.INFO)

    file_handlers = [h for h in bare_root.handlers if isinstance(h, logging.FileHandler)]
    assert len(file_handlers) == 1
    file_handlers[0].close()


def test_setup_logging_is_idempotent(bare_root, monkeypatch):
    monkeypatch.setattr(config, "LOG_FILE", "")

    config.setup_logging(logging.INFO)
    config.setup_logging(logging.DEBUG)

    assert len(bare_root.handlers) == 1
    assert bare_root.level == logging.INFO

