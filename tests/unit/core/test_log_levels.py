"""Test log level filtering, especially spew level."""

import pytest

from gitgate.core.log import (
    LEVELS,
    ConsoleSink,
    FileSink,
    OTLPSink,
    level_name,
    setup_logger,
)


def file_logger(tmp_path, level):
    log_file = tmp_path / f"{level}.log"
    logger = setup_logger(
        log_root=tmp_path,
        run_name="test",
        console=ConsoleSink(enabled=False),
        otlp=OTLPSink(enabled=False),
        file=FileSink(enabled=True, level=level, path=str(log_file)),
    )
    return logger, log_file


def test_spew_level_includes_all(tmp_path):
    logger, log_file = file_logger(tmp_path, "spew")
    logger.spew("SPEW message")
    logger.trace("TRACE message")
    logger.debug("DEBUG message")
    logger.info("INFO message")
    logger.close()

    content = log_file.read_text()
    assert "SPEW message" in content
    assert "TRACE message" in content
    assert "DEBUG message" in content
    assert "INFO message" in content


def test_info_level_filters_below_info(tmp_path):
    logger, log_file = file_logger(tmp_path, "info")
    logger.spew("SPEW message")
    logger.trace("TRACE message")
    logger.debug("DEBUG message")
    logger.info("INFO message")
    logger.warn("WARN message")
    logger.error("ERROR message")
    logger.close()

    content = log_file.read_text()
    assert "SPEW message" not in content
    assert "TRACE message" not in content
    assert "DEBUG message" not in content
    assert "INFO message" in content
    assert "WARN message" in content
    assert "ERROR message" in content


def test_attributes_rendered_after_message(tmp_path):
    logger, log_file = file_logger(tmp_path, "info")
    logger.info("Action rejected", repo_id="r1")
    logger.close()

    assert "repo_id='r1'" in log_file.read_text()


@pytest.mark.parametrize("name", ["spew", "trace", "debug", "info", "warn", "error", "fatal"])
def test_level_name_round_trip(name):
    assert level_name(LEVELS[name]) == name


def test_levels_are_ordered():
    order = ["spew", "trace", "debug", "info", "warn", "error", "fatal"]
    values = [LEVELS[n] for n in order]
    assert values == sorted(values)
