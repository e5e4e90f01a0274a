import logging

import pytest

from impactviz.logging_config import setup_logging
from impactviz.main import build_parser, main


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    logger = logging.getLogger("impactviz")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.headless is False
    assert args.at_ms == 4300
    assert args.material == "rock"
    assert args.location is None


def test_parser_rejects_unknown_location():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--location", "atlantis"])


def test_headless_run_writes_snapshot(tmp_path):
    out = tmp_path / "impact.html"
    assert main(["--headless", "--snapshot", str(out), "--crater-radius", "1500"]) == 0
    html = out.read_text(encoding="utf-8")
    assert "Severe destruction zone: 1500 m" in html
    assert "Epicenter: 750 m" in html


def test_headless_run_with_preset_and_log_file(tmp_path):
    out = tmp_path / "spain.html"
    log = tmp_path / "run.log"
    code = main([
        "--headless", "--snapshot", str(out), "--location", "spain",
        "--at-ms", "99999", "--log-file", str(log),
    ])
    assert code == 0
    assert "40.4637" in out.read_text(encoding="utf-8")
    assert "Simulation session closed." in log.read_text(encoding="utf-8")


def test_setup_logging_twice_keeps_one_set_of_handlers(tmp_path):
    setup_logging(level=logging.DEBUG)
    setup_logging(level=logging.WARNING, log_file=str(tmp_path / "run.log"))
    logger = logging.getLogger("impactviz")
    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 2
    assert sum(isinstance(h, logging.FileHandler) for h in logger.handlers) == 1
