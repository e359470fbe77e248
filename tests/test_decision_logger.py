"""
Tests for decision_logger.py

Run with: python -m pytest tests/test_decision_logger.py -v
"""

import json

import pytest

from config import config
from faction_ai import decision_logger
from faction_ai.models import Difficulty, StrategicFocus, StrategicIntent
from faction_ai.turn_controller import QueuedAction, QueuedActionKind


@pytest.fixture
def queue():
    return [
        QueuedAction(id="q-1", kind=QueuedActionKind.ATTACK, description="Militia attacks Security",
                     confidence=72.456, acting_asset_id="r1", target="b1"),
        QueuedAction(id="q-2", kind=QueuedActionKind.PURCHASE, description="Buy Harvesters",
                     confidence=50.0, target="wealth_1_harvesters"),
    ]


@pytest.fixture
def isolated_log_dir(tmp_path, monkeypatch):
    decision_logger.close()
    monkeypatch.setattr(config, "LOG_DIR", str(tmp_path))
    yield tmp_path
    decision_logger.close()


class TestBuildDecisionRecord:
    """Tests for build_decision_record"""

    def test_fields(self, make_faction, queue):
        faction = make_faction("red", "sol")
        intent = StrategicIntent(primary_focus=StrategicFocus.MILITARY, aggression=80, target_faction_id="blue")
        record = decision_logger.build_decision_record(faction, Difficulty.HARD, intent, queue, ["Goal: kept"], turn=3)

        assert record["faction_id"] == "red"
        assert record["difficulty"] == "hard"
        assert record["turn"] == 3
        assert record["intent"]["target_faction_id"] == "blue"
        assert [e["kind"] for e in record["queue"]] == ["attack", "purchase"]
        assert record["queue"][0]["confidence"] == 72.5
        assert record["reasoning"] == ["Goal: kept"]

    def test_missing_intent(self, make_faction):
        record = decision_logger.build_decision_record(make_faction("red", "sol"), Difficulty.EASY, None, [], [])
        assert record["intent"] is None
        assert record["queue"] == []


class TestLogDecision:
    """Tests for writing the decision log"""

    def test_writes_json_line(self, isolated_log_dir, make_faction, queue):
        faction = make_faction("red", "sol")
        decision_logger.log_decision(faction, Difficulty.NORMAL, StrategicIntent(), queue, ["one"], turn=2)
        decision_logger.log_decision(faction, Difficulty.NORMAL, StrategicIntent(), [], ["two"], turn=3)
        decision_logger.flush()

        lines = (isolated_log_dir / decision_logger.DECISION_LOG_NAME).read_text(encoding='utf-8').splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["turn"] == 2
        assert json.loads(lines[1])["reasoning"] == ["two"]
