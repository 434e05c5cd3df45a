import logging

import mediadb.logger as logger


def test_filter_log_kwargs_accepts_supported_keys():
    err = ValueError("boom")
    out = logger._filter_log_kwargs(
        {
            "exc_info": err,
            "stack_info": True,
            "stacklevel": 2,
            "extra": {"api": "OMDbAPI"},
            "bad": "nope",
        }
    )

    assert out["exc_info"] is err
    assert out["stack_info"] is True
    assert out["stacklevel"] == 2
    assert out["extra"] == {"api": "OMDbAPI"}
    assert "bad" not in out


def test_filter_log_kwargs_ignores_invalid_types():
    out = logger._filter_log_kwargs({"exc_info": "no", "stack_info": "no", "stacklevel": True, "extra": "no"})
    assert out == {}


def test_truncate_line_marks_truncated():
    assert logger.truncate_line("short") == "short"
    out = logger.truncate_line("x" * 50, max_chars=20)
    assert out.endswith("(truncated)")
    assert len(out) <= 20


def test_silent_mode_suppresses_info_but_not_errors(monkeypatch, caplog):
    monkeypatch.setattr(logger, "is_silent_mode", lambda: True)
    caplog.set_level(logging.INFO, logger=logger.LOGGER_NAME)

    logger.info("hidden")
    logger.info("forced", always=True)
    logger.error("broken")

    messages = [r.getMessage() for r in caplog.records]
    assert "hidden" not in messages
    assert "forced" in messages
    assert "broken" in messages


def test_debug_ctx_only_in_debug_mode(monkeypatch, caplog, capsys):
    caplog.set_level(logging.INFO, logger=logger.LOGGER_NAME)

    monkeypatch.setattr(logger, "is_debug_mode", lambda: False)
    logger.debug_ctx("omdb", "off")
    assert caplog.records == []

    monkeypatch.setattr(logger, "is_debug_mode", lambda: True)
    monkeypatch.setattr(logger, "is_silent_mode", lambda: False)
    logger.debug_ctx("omdb", "on")
    assert caplog.records[-1].getMessage() == "[OMDB][DEBUG] on"

    monkeypatch.setattr(logger, "is_silent_mode", lambda: True)
    logger.debug_ctx("igdb", "quiet")
    assert "[IGDB][DEBUG] quiet" in capsys.readouterr().out
