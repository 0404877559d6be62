"""Tests for the command line and scenario config files."""

import json
from datetime import date

import pytest
import yaml

from stampduty.cli import main
from stampduty.config import dict_to_inputs, inputs_to_dict, load_config
from stampduty.params import BuyerFlags, FinancingInput, FinancingPolicy


class TestConfig:
    def test_dict_to_inputs(self):
        inputs = dict_to_inputs({
            "jurisdiction": "vic",
            "cash_on_hand": 80_000,
            "financing_policy": "subsidized_guarantee",
            "contract_date": "2025-12-01",
            "buyer": {"is_first_home_buyer": True, "region": "non_metro"},
            "unknown": 1,
        })
        assert inputs.jurisdiction == "VIC"
        assert inputs.cash_on_hand == 80_000
        assert inputs.financing_policy is FinancingPolicy.SUBSIDIZED_GUARANTEE
        assert inputs.contract_date == date(2025, 12, 1)
        assert inputs.buyer == BuyerFlags(is_first_home_buyer=True, region="non_metro")

    def test_defaults_survive_a_round_trip(self):
        assert dict_to_inputs(inputs_to_dict(FinancingInput())) == FinancingInput()

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "scenario.yaml"
        path.write_text("jurisdiction: QLD\nborrowing_power: 650000\nbuyer:\n  is_owner_occupier: true\n")
        inputs = load_config(path)
        assert inputs.jurisdiction == "QLD"
        assert inputs.borrowing_power == 650_000
        assert inputs.buyer.is_owner_occupier


class TestDutyCommand:
    def test_json(self, capsys):
        main(["duty", "NSW", "800000", "--json"])
        out = json.loads(capsys.readouterr().out)
        assert out["duty"] == 30_529
        assert out["mode"] == "established"

    def test_report_shows_concession(self, capsys):
        main(["duty", "NSW", "900000", "--first-home"])
        out = capsys.readouterr().out
        assert "Concession" in out
        assert "$17,515" in out

    def test_unsupported_jurisdiction(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["duty", "XX", "500000"])
        assert exc.value.code == 1
        assert "Error: Unsupported jurisdiction" in capsys.readouterr().err

    def test_missing_arguments(self):
        with pytest.raises(SystemExit) as exc:
            main(["duty"])
        assert exc.value.code == 1

    def test_interactive(self, monkeypatch, capsys):
        answers = iter(["QLD", "750,000", "n", "y", "y", ""])
        monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))
        main(["duty", "--interactive", "--json"])
        out = capsys.readouterr().out
        assert json.loads(out[out.index("{"):])["duty"] == 10_925


class TestSolveCommand:
    def test_json(self, capsys):
        main(["solve", "--policy", "no_insurance_cap", "--cash", "100000", "--borrowing-power", "1000000", "--json"])
        out = json.loads(capsys.readouterr().out)
        assert 430_494 <= out["max_price"] <= 430_495
        assert out["explain"]["mode"] == "no_insurance_cap"

    def test_report(self, capsys):
        main(["solve", "-j", "VIC", "--cash", "120000"])
        out = capsys.readouterr().out
        assert "Purchasing power - VIC" in out
        assert "Maximum price" in out

    def test_infeasible(self, capsys):
        main(["solve", "--cash", "0"])
        assert "Infeasible with current inputs" in capsys.readouterr().out

    def test_config_file_with_overrides(self, tmp_path, capsys):
        path = tmp_path / "scenario.yaml"
        path.write_text("jurisdiction: WA\ncash_on_hand: 90000\n")
        main(["solve", str(path), "--first-home", "--json"])
        out = json.loads(capsys.readouterr().out)
        assert out["feasible"]

    def test_bad_borrowing_power(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["solve", "--borrowing-power", "0"])
        assert exc.value.code == 1
        assert "borrowing_power" in capsys.readouterr().err


class TestOtherCommands:
    def test_features(self, capsys):
        main(["features", "--json"])
        features = json.loads(capsys.readouterr().out)
        assert [f["jurisdiction"] for f in features] == ["ACT", "NSW", "NT", "QLD", "SA", "TAS", "VIC", "WA"]

    def test_features_table(self, capsys):
        main(["features", "VIC"])
        assert "owner-occupier: yes" in capsys.readouterr().out

    def test_curve(self, capsys):
        main(["curve", "NSW", "--start", "800000", "--stop", "1000000", "--points", "3"])
        lines = capsys.readouterr().out.strip().splitlines()
        assert lines == ["price,duty", "800000,30529", "900000,35029", "1000000,39529"]

    def test_sweep(self, capsys):
        main(["sweep", "--param", "cash_on_hand", "--range", "50000,150000,50000"])
        out = capsys.readouterr().out
        assert "Sensitivity: cash_on_hand" in out
        assert out.count("\n") >= 5

    def test_sweep_bad_range(self):
        with pytest.raises(SystemExit):
            main(["sweep", "--param", "cash_on_hand", "--range", "1,2"])

    def test_defaults(self, capsys):
        main(["defaults"])
        data = yaml.safe_load(capsys.readouterr().out)
        assert data["jurisdiction"] == "NSW"
        assert data["financing_policy"] == "insurance_allowed"
        assert data["buyer"]["is_first_home_buyer"] is False

    def test_no_command(self, capsys):
        main([])
        assert "usage" in capsys.readouterr().out.lower()
