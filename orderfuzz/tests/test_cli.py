"""Tests for the orderfuzz CLI (orderfuzz/cli/main.py).

Covers:
- Argument parsing
- mutations / eligible / plan / config commands
- Fixture errors
- Settings wiring (disabled kinds, weights, baseline fallback)
"""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from orderfuzz.cli.main import VERSION, build_parser, load_fixture, main
from orderfuzz.core.config import get_settings
from orderfuzz.core.errors import FixtureError
from orderfuzz.core.types import FulfillmentAction
from orderfuzz.fuzzer.registry import MutationKind
from orderfuzz.tests._helpers import CALLER, CONTRACT_OFFERER, OFFERER


# ── Fixtures ─────────────────────────────────────────────────────────────

@pytest.fixture
def parser() -> argparse.ArgumentParser:
    return build_parser()


@pytest.fixture
def fixture_file(tmp_path: Path) -> Path:
    payload = {
        "orders": [
            {
                "offerer": OFFERER,
                "order_type": "partial_open",
                "signature": "0x" + "01" * 65,
                "numerator": 1,
                "denominator": 2,
                "start_time": 1000,
                "end_time": 2000,
                "order_hash": "0x" + "11" * 32,
            },
            {
                "offerer": CONTRACT_OFFERER,
                "order_type": "contract",
                "order_hash": "0x" + "22" * 32,
            },
        ],
        "caller": CALLER,
        "action": "fulfillAdvancedOrder",
        "timestamp": 1500,
        "contract_accounts": [CONTRACT_OFFERER],
    }
    path = tmp_path / "batch.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


# ── Parser ───────────────────────────────────────────────────────────────

class TestParser:
    def test_eligible_args(self, parser):
        args = parser.parse_args(["eligible", "batch.json", "--action", "matchOrders", "-f", "json"])
        assert args.command == "eligible"
        assert args.action == "matchOrders"
        assert args.format == "json"

    def test_plan_seed(self, parser):
        args = parser.parse_args(["plan", "batch.json", "--seed", "3"])
        assert args.seed == 3

    def test_rejects_unknown_action(self, parser):
        with pytest.raises(SystemExit):
            parser.parse_args(["eligible", "batch.json", "--action", "swap"])


# ── Commands ─────────────────────────────────────────────────────────────

class TestCommands:
    def test_version(self, capsys):
        assert main(["--version"]) == 0
        assert VERSION in capsys.readouterr().out

    def test_mutations_lists_every_kind(self, capsys):
        assert main(["mutations"]) == 0
        out = capsys.readouterr().out
        for kind in MutationKind:
            assert kind.value in out

    def test_eligible_json(self, fixture_file, capsys):
        assert main(["eligible", str(fixture_file), "-f", "json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["action"] == "fulfillAdvancedOrder"
        assert data["candidates"]["bad_signature_v"] == [0]
        assert data["candidates"]["invalid_signer_bad_signature"] == []
        assert data["candidates"]["order_is_cancelled"] == [0]

    def test_eligible_action_override(self, fixture_file, capsys):
        assert main(["eligible", str(fixture_file), "--action", "fulfillAvailableAdvancedOrders", "-f", "json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["candidates"]["invalid_time_expired"] == []
        assert data["candidates"]["bad_fraction_no_fill"] == []
        assert data["candidates"]["bad_fraction_overfill"] == [0]

    def test_plan_json(self, fixture_file, capsys):
        assert main(["plan", str(fixture_file), "--seed", "4", "-f", "json"]) == 0
        plan = json.loads(capsys.readouterr().out)
        assert plan["order_index"] == 0
        assert plan["mutation"] in {k.value for k in MutationKind}
        assert plan["expected"]

    def test_missing_fixture(self, tmp_path, capsys):
        assert main(["eligible", str(tmp_path / "nope.json")]) == 1
        assert "INVALID_FIXTURE" in capsys.readouterr().err

    def test_invalid_fixture(self, tmp_path, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"orders": [], "caller": CALLER, "action": "teleport"}), encoding="utf-8")
        assert main(["plan", str(bad)]) == 1

    def test_config(self, capsys):
        assert main(["config"]) == 0
        assert "selection_policy" in capsys.readouterr().out


class TestSettingsWiring:
    """Commands build their selector from ORDERFUZZ_* settings."""

    @pytest.fixture(autouse=True)
    def fresh_settings(self):
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()

    @patch.dict(os.environ, {"ORDERFUZZ_DISABLED_MUTATIONS": "bad_signature_v,order_is_cancelled"})
    def test_eligible_skips_disabled(self, fixture_file, capsys):
        assert main(["eligible", str(fixture_file), "-f", "json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert "bad_signature_v" not in data["candidates"]
        assert "order_is_cancelled" not in data["candidates"]
        assert data["candidates"]["invalid_signature"] == [0]
        assert data["disabled"] == ["bad_signature_v", "order_is_cancelled"]

    @patch.dict(os.environ, {"ORDERFUZZ_DISABLED_MUTATIONS": "bad_signature_v"})
    def test_eligible_table_marks_disabled(self, fixture_file, capsys):
        assert main(["eligible", str(fixture_file)]) == 0
        line = next(row for row in capsys.readouterr().out.splitlines() if "bad_signature_v" in row)
        assert "disabled" in line

    def test_plan_seed_keeps_disabled(self, fixture_file, capsys):
        keep = MutationKind.ORDER_IS_CANCELLED
        env = {"ORDERFUZZ_DISABLED_MUTATIONS": ",".join(k.value for k in MutationKind if k is not keep)}
        with patch.dict(os.environ, env):
            assert main(["plan", str(fixture_file), "--seed", "4", "-f", "json"]) == 0
        plan = json.loads(capsys.readouterr().out)
        assert plan["mutation"] == keep.value

    def test_plan_seed_keeps_baseline_setting(self, fixture_file, capsys):
        env = {
            "ORDERFUZZ_DISABLED_MUTATIONS": ",".join(k.value for k in MutationKind),
            "ORDERFUZZ_BASELINE_ON_NO_CANDIDATE": "false",
        }
        with patch.dict(os.environ, env):
            assert main(["plan", str(fixture_file), "--seed", "4", "-f", "json"]) == 0
        plan = json.loads(capsys.readouterr().out)
        assert plan["mutation"] is None
        assert plan["baseline"] is False

    def test_plan_without_candidates_runs_baseline(self, fixture_file, capsys):
        env = {"ORDERFUZZ_DISABLED_MUTATIONS": ",".join(k.value for k in MutationKind)}
        with patch.dict(os.environ, env):
            assert main(["plan", str(fixture_file), "-f", "json"]) == 0
        assert json.loads(capsys.readouterr().out)["baseline"] is True

    @patch.dict(os.environ, {"ORDERFUZZ_MUTATION_WEIGHTS": '{"nope": 1.0}'})
    def test_unknown_weight_key(self, fixture_file, capsys):
        assert main(["plan", str(fixture_file)]) == 1
        assert "UNKNOWN_MUTATION" in capsys.readouterr().err


class TestLoadFixture:
    def test_action_override(self, fixture_file):
        fixture = load_fixture(str(fixture_file), "matchAdvancedOrders")
        assert fixture.action is FulfillmentAction.MATCH_ADVANCED_ORDERS

    def test_missing(self, tmp_path):
        with pytest.raises(FixtureError):
            load_fixture(str(tmp_path / "missing.json"))
