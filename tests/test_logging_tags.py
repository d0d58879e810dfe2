"""Tests for truthful logging tags ([AI] vs [•]) in orchestrator output.

These tests assert that:
- Tick steps are tagged deterministic and the summary line success
- Quest requests are tagged [AI] only when a text generator is consulted
"""

from __future__ import annotations

import contextlib
import io
import random

import pytest

from fablerealm.config import Config
from fablerealm.grid import create_grid
from fablerealm.logging_utils import Color, colored, log_error, log_info, log_llm
from fablerealm.orchestrator import Orchestrator
from fablerealm.schemas import CityStats


def _orchestrator(ai_enabled: bool) -> Orchestrator:
    return Orchestrator(
        grid=create_grid(3),
        stats=CityStats(),
        ai_enabled=ai_enabled,
        goal_fetch_delay=0,
        tick_rate_seconds=0,
        news_chance=0,
        llm_provider="openai",
        llm_model="gpt-5-nano",
        rng=random.Random(0),
    )


@pytest.mark.asyncio
async def test_tick_tags_deterministic(monkeypatch):
    monkeypatch.setenv("FABLEREALM_NO_COLOR", "1")
    orchestrator = _orchestrator(ai_enabled=False)

    buf = io.StringIO()
    with contextlib.redirect_stdout(buf):
        await orchestrator.run(num_ticks=1)
    out = buf.getvalue()

    assert "[•] [Tick 1] Advancing the realm..." in out
    assert "[✓] Day 2 | Gold=15000" in out
    assert "[AI]" not in out


@pytest.mark.asyncio
async def test_quest_request_tagged_llm(monkeypatch):
    monkeypatch.setenv("FABLEREALM_NO_COLOR", "1")

    async def fake_call_llm_with_retries(**kwargs):
        raise RuntimeError("offline")

    monkeypatch.setattr("fablerealm.llm_calls.call_llm_with_retries", fake_call_llm_with_retries)
    orchestrator = _orchestrator(ai_enabled=True)

    buf = io.StringIO()
    with contextlib.redirect_stdout(buf):
        await orchestrator.tick()
        await orchestrator.drain()
    out = buf.getvalue()

    assert "[AI] [Royal Wizard] Requesting a new decree..." in out
    assert "[!] [Royal Wizard] Failed to generate quest: offline" in out
    assert orchestrator.current_goal is not None


def test_colored_respects_no_color(monkeypatch):
    monkeypatch.delenv("FABLEREALM_NO_COLOR", raising=False)
    assert colored("hi", Color.RED) == "\033[91mhi\033[0m"
    assert colored("hi", Color.RED, bold=True).startswith("\033[1m\033[91m")

    monkeypatch.setenv("FABLEREALM_NO_COLOR", "1")
    assert colored("hi", Color.RED) == "hi"


def test_log_level_filters_helpers(monkeypatch, capsys):
    monkeypatch.setenv("FABLEREALM_NO_COLOR", "1")
    monkeypatch.setattr(Config, "LOG_LEVEL", "ERROR")

    log_info("Treasury audited")
    log_llm("Consulting the wizard")
    log_error("Scrying pool clouded")

    out = capsys.readouterr().out
    assert out == "[!] Scrying pool clouded\n"


def test_unknown_log_level_behaves_like_info(monkeypatch, capsys):
    monkeypatch.setenv("FABLEREALM_NO_COLOR", "1")
    monkeypatch.setattr(Config, "LOG_LEVEL", "chatty")

    log_info("Treasury audited")

    assert capsys.readouterr().out == "[i] Treasury audited\n"
