"""Tests for the headless runner and configuration checks."""

import argparse

import pytest

from fablerealm import cli
from fablerealm.config import Config
from fablerealm.schemas import BuildingType


def test_parse_build():
    assert cli.parse_build("residential:2,3") == (BuildingType.RESIDENTIAL, 2, 3)
    assert cli.parse_build(" Power_Plant :0,14") == (BuildingType.POWER_PLANT, 0, 14)


@pytest.mark.parametrize("value", ["castle:1,1", "residential", "park:1", "park:a,b"])
def test_parse_build_rejects_malformed(value):
    with pytest.raises(argparse.ArgumentTypeError):
        cli.parse_build(value)


def test_main_runs_headless(monkeypatch, capsys):
    monkeypatch.setattr(Config, "GOAL_FETCH_DELAY_SECONDS", 0.0)

    code = cli.main(
        ["--no-ai", "--ticks", "2", "--tick-rate", "0", "--seed", "4", "--build", "residential:1,1"]
    )

    out = capsys.readouterr().out
    assert code == 0
    assert "residential @ (1,1): Established Thatch Cottage." in out
    assert "Day 3 |" in out
    assert "Quest (active):" in out


def test_main_reports_config_errors(monkeypatch, capsys):
    monkeypatch.setattr(Config, "AI_ENABLED", True)
    monkeypatch.setattr(Config, "LLM_PROVIDER", "openai")
    monkeypatch.setattr(Config, "OPENAI_API_KEY", None)

    assert cli.main(["--ticks", "1"]) == 2
    assert "OPENAI_API_KEY" in capsys.readouterr().err


def test_validate_rejects_bad_grid(monkeypatch):
    monkeypatch.setattr(Config, "GRID_SIZE", 0)
    with pytest.raises(ValueError):
        Config.validate()


def test_validate_skips_keys_without_ai(monkeypatch):
    monkeypatch.setattr(Config, "AI_ENABLED", False)
    monkeypatch.setattr(Config, "OPENAI_API_KEY", None)
    monkeypatch.setattr(Config, "ANTHROPIC_API_KEY", None)
    Config.validate()
