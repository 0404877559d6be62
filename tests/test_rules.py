"""Tests for rule-table parsing and the rule book."""

import json

import pytest

from stampduty.errors import InvalidInput, RuleSetNotReady, ScheduleError, UnsupportedJurisdiction
from stampduty.rules import (
    TaperShape,
    dict_to_rule_set,
    load_rule_set,
    load_rulebook,
)


def _table(**modes):
    modes.setdefault("established", {"schedule": [{"upper_bound": None, "base": 0, "rate": 0.04}]})
    return {"meta": {"jurisdiction": "ZZ", "financial_year": "2025-26"}, "modes": modes}


class TestRuleBook:
    def test_all_jurisdictions_loaded(self):
        book = load_rulebook()
        assert book.jurisdictions == ["ACT", "NSW", "NT", "QLD", "SA", "TAS", "VIC", "WA"]

    def test_cached(self):
        assert load_rulebook() is load_rulebook()

    def test_lookup_is_case_insensitive(self):
        assert load_rulebook().get("nsw").jurisdiction == "NSW"

    def test_unknown_code(self):
        with pytest.raises(UnsupportedJurisdiction, match="Supported"):
            load_rulebook().get("XX")

    def test_unknown_code_is_invalid_input(self):
        with pytest.raises(InvalidInput):
            load_rulebook().get("XX")

    @pytest.mark.parametrize("code", ["", "   ", None, 12])
    def test_missing_code(self, code):
        with pytest.raises(InvalidInput):
            load_rulebook().get(code)

    def test_rule_sets_are_read_only(self):
        rules = load_rulebook().get("VIC")
        with pytest.raises(TypeError):
            rules.modes["established"] = None

    def test_unknown_period(self):
        with pytest.raises(UnsupportedJurisdiction):
            load_rulebook("1999-00")


class TestDictToRuleSet:
    def test_minimal(self):
        rules = dict_to_rule_set(_table())
        assert rules.jurisdiction == "ZZ"
        assert rules.is_ready
        assert not rules.supports_owner_occupier_mode

    def test_supports_owner_occupier_defaults_to_mode_presence(self):
        rules = dict_to_rule_set(_table(owner_occupier={"schedule": [{"upper_bound": None, "rate": 0.01}]}))
        assert rules.supports_owner_occupier_mode

    def test_requires_established(self):
        data = _table()
        data["modes"] = {"land": {"schedule": [{"upper_bound": None, "rate": 0.01}]}}
        with pytest.raises(ScheduleError, match="established"):
            dict_to_rule_set(data)

    def test_single_level_inheritance(self):
        rules = dict_to_rule_set(_table(land={"inherits": "established"}))
        assert rules.resolve("land").name == "established"

    def test_multi_level_inheritance_rejected(self):
        data = _table(land={"inherits": "vacant"}, vacant={"inherits": "established"})
        with pytest.raises(ScheduleError, match="one level"):
            dict_to_rule_set(data)

    def test_inherits_unknown_mode(self):
        with pytest.raises(ScheduleError, match="unknown mode"):
            dict_to_rule_set(_table(land={"inherits": "nowhere"}))

    def test_mode_without_rows_or_inherits(self):
        with pytest.raises(ScheduleError, match="neither"):
            dict_to_rule_set(_table(land={"price_cap": 100}))

    def test_schedule_brackets_form(self):
        rules = dict_to_rule_set(_table(
            land={"schedule": {"brackets": [{"upper_bound": None, "base": 0, "rate": 0.02}]}}
        ))
        assert len(rules.rows_for("land")) == 1

    def test_missing_mode(self):
        with pytest.raises(ScheduleError, match="no mode"):
            dict_to_rule_set(_table()).resolve("owner_occupier")

    def test_concession_parsing(self):
        data = _table()
        data["fhb"] = {"concessions": [{
            "when": {"property_type": "established", "owner_occupier": True},
            "full_exemption_up_to": 500_000,
            "taper_end_price": 600_000,
            "taper_shape": "step_rebate",
            "basis_mode": "established",
            "step_amount": 100,
            "step_interval": 10_000,
        }]}
        (rule,) = dict_to_rule_set(data).concessions
        assert rule.taper_shape is TaperShape.STEP_REBATE
        assert rule.matches("established", True)
        assert not rule.matches("established", False)
        assert not rule.matches("land", True)

    def test_disabled_concessions_ignored(self):
        data = _table()
        data["fhb"] = {"enabled": False, "concessions": [{"full_exemption_up_to": 1}]}
        assert dict_to_rule_set(data).concessions == ()

    @pytest.mark.parametrize("concession, message", [
        ({"full_exemption_up_to": 500, "taper_end_price": 400}, "exceed"),
        ({"full_exemption_up_to": 500, "basis_mode": "nope"}, "basis_mode"),
        ({"full_exemption_up_to": 500, "taper_end_price": 600, "taper_shape": "linear_to_cap"}, "cap_price"),
        ({"full_exemption_up_to": 500, "taper_end_price": 600, "taper_shape": "step_rebate"}, "step_amount"),
        ({"full_exemption_up_to": 500, "taper_shape": "wiggly"}, "taper_shape"),
    ])
    def test_bad_concessions(self, concession, message):
        data = _table()
        data["fhb"] = {"concessions": [concession]}
        with pytest.raises(ScheduleError, match=message):
            dict_to_rule_set(data)

    def test_draft_not_ready(self):
        data = _table()
        data["meta"]["status"] = "draft"
        rules = dict_to_rule_set(data)
        assert not rules.is_ready
        with pytest.raises(RuleSetNotReady, match="ZZ"):
            rules.require_ready()

    def test_formula(self):
        rules = load_rulebook().get("NT")
        assert rules.formula is not None
        assert rules.formula.max_applicable == 525_000

    def test_unknown_formula_type(self):
        data = _table(established={
            "formula": {"type": "spline", "coefficients": [1]},
            "schedule": [{"upper_bound": None, "rate": 0.01}],
        })
        with pytest.raises(ScheduleError, match="formula"):
            dict_to_rule_set(data)


class TestLoadRuleSet:
    def test_json_file(self, tmp_path):
        path = tmp_path / "zz.json"
        path.write_text(json.dumps({"modes": {"established": [{"upper_bound": None, "rate": 0.03}]}}))
        rules = load_rule_set(path)
        assert rules.jurisdiction == "ZZ"  # from the file name

    def test_error_names_file(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("modes:\n  established:\n    schedule: []\n")
        with pytest.raises(ScheduleError, match="bad.yaml"):
            load_rule_set(path)
