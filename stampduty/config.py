"""YAML config loading for purchasing-power scenarios."""

from dataclasses import asdict, fields
from pathlib import Path

from stampduty.guarantee import parse_contract_date
from stampduty.params import BuyerFlags, FinancingInput
from stampduty.rules import load_rule_file


def load_config(path: str | Path) -> FinancingInput:
    """Load financing inputs from a YAML or JSON file."""
    return dict_to_inputs(load_rule_file(path) or {})


def dict_to_inputs(data: dict) -> FinancingInput:
    """Convert a nested dict to FinancingInput. Unknown keys are ignored."""
    buyer_data = data.get("buyer") or {}
    buyer = BuyerFlags(**{k: v for k, v in buyer_data.items() if hasattr(BuyerFlags, k)})

    names = {f.name for f in fields(FinancingInput)} - {"buyer"}
    top = {k: v for k, v in data.items() if k in names}
    if top.get("contract_date") is not None:
        top["contract_date"] = parse_contract_date(top["contract_date"])
    if "jurisdiction" in top:
        top["jurisdiction"] = str(top["jurisdiction"]).upper()

    return FinancingInput(buyer=buyer, **top)


def inputs_to_dict(inputs: FinancingInput) -> dict:
    """Convert FinancingInput to a serialisable dict."""
    d = asdict(inputs)
    d["financing_policy"] = inputs.financing_policy.value
    if inputs.contract_date is not None:
        d["contract_date"] = inputs.contract_date.isoformat()
    return d
