from __future__ import annotations

import structlog
from structlog.testing import capture_logs

from common.logger import LoggerService, setup_logger
from state.preferences import InMemoryPreferences
from state.user_data import UserDataRepository


def test_markers_name_the_calling_method():
    service = LoggerService("test")

    def remove_everything():
        service.start_method()
        service.end_method()

    with capture_logs() as logs:
        remove_everything()

    assert [(e["event"], e["method"]) for e in logs] == [
        ("method_start", "remove_everything"),
        ("method_end", "remove_everything"),
    ]
    assert all(e["log_level"] == "debug" for e in logs)


def test_explicit_method_name():
    with capture_logs() as logs:
        LoggerService("test").start_method("sync")
    assert logs[0]["method"] == "sync"


def test_repository_emits_markers():
    repo = UserDataRepository(InMemoryPreferences())
    with capture_logs() as logs:
        repo.set_last_process_tek_timestamp("US", 1)
    assert [e["method"] for e in logs] == ["set_last_process_tek_timestamp"] * 2


def test_setup_logger_filters_below_env_level(monkeypatch):
    monkeypatch.setenv("RADAR_LOG_LEVEL", "warning")
    try:
        setup_logger()
        with capture_logs() as logs:
            log = structlog.get_logger("level-test")
            log.debug("hidden")
            log.info("hidden")
            log.warning("shown")
        assert [e["event"] for e in logs] == ["shown"]
    finally:
        structlog.reset_defaults()


def test_setup_logger_unknown_level_falls_back_to_info(monkeypatch):
    monkeypatch.delenv("RADAR_LOG_LEVEL", raising=False)
    try:
        setup_logger("nonsense")
        with capture_logs() as logs:
            log = structlog.get_logger("level-test")
            log.debug("hidden")
            log.info("shown")
        assert [e["event"] for e in logs] == ["shown"]
    finally:
        structlog.reset_defaults()
