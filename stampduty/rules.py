"""Rule-table types and loading.

A rule table describes one jurisdiction for one financial year: its named
duty schedules ("modes"), optional first-home concessions and an optional
closed-form duty formula. Tables are YAML (or JSON) files under
``stampduty/tables/<period>/`` and are loaded once per process into frozen
dataclasses shared by every query.
"""

import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

import yaml

from stampduty.brackets import BracketRow, normalize_rows, round_dollars, to_decimal
from stampduty.errors import (
    InvalidInput,
    RuleSetNotReady,
    ScheduleError,
    UnsupportedJurisdiction,
)

logger = logging.getLogger(__name__)

RULES_DIR = Path(__file__).resolve().parent / "tables"
DEFAULT_PERIOD = "2025-26"

ESTABLISHED = "established"
LAND = "land"
OWNER_OCCUPIER = "owner_occupier"
FIRST_HOME_LAND = "first_home_land"
FIRST_HOME_PREFIX = "first_home_"


def normalize_region(region, default: str) -> str:
    """Lower-case region key; blank or missing means ``default``."""
    key = "" if region is None else str(region).strip().lower()
    return key or default


class TaperShape(str, Enum):
    LINEAR_TO_FULL = "linear_to_full"
    LINEAR_TO_CAP = "linear_to_cap"
    STEP_REBATE = "step_rebate"


@dataclass(frozen=True)
class Schedule:
    """A named bracket schedule, or a pointer to another one."""

    name: str
    rows: tuple[BracketRow, ...] = ()
    inherits: str | None = None
    price_cap: Decimal | None = None  # mode only selectable at or below this price
    region: str | None = None

    def allows(self, price: Decimal) -> bool:
        return self.price_cap is None or price <= self.price_cap


@dataclass(frozen=True)
class ClosedFormFormula:
    """Polynomial duty in V = price / unit, used up to ``max_applicable``."""

    max_applicable: Decimal
    unit: Decimal
    coefficients: tuple[Decimal, ...]
    type: str = "closed_form_poly"

    def applies(self, price: Decimal) -> bool:
        return price <= self.max_applicable

    def evaluate(self, price: Decimal) -> int:
        v = price / self.unit
        total = sum(c * v**i for i, c in enumerate(self.coefficients))
        return round_dollars(Decimal(total))


@dataclass(frozen=True)
class ConcessionRule:
    """Declarative first-home concession, matched on property type and occupancy."""

    property_type: str  # "established" or "land"
    owner_occupier: bool | None  # None = either
    full_exemption_up_to: Decimal
    taper_end_price: Decimal | None = None
    taper_shape: TaperShape = TaperShape.LINEAR_TO_FULL
    basis_mode: str | None = None
    cap_price: Decimal | None = None
    step_amount: Decimal | None = None
    step_interval: Decimal | None = None

    def matches(self, property_type: str, is_owner_occupier: bool) -> bool:
        if self.property_type != property_type:
            return False
        return self.owner_occupier is None or self.owner_occupier == is_owner_occupier


@dataclass(frozen=True)
class RuleSet:
    """One jurisdiction's configuration for one financial year."""

    jurisdiction: str
    financial_year: str
    status: str
    supports_owner_occupier_mode: bool
    primary_region: str
    modes: Mapping[str, Schedule]
    concessions: tuple[ConcessionRule, ...] = ()
    formula: ClosedFormFormula | None = None

    @property
    def is_ready(self) -> bool:
        return self.status == "ready"

    def require_ready(self) -> None:
        if not self.is_ready:
            raise RuleSetNotReady(
                f"Rules for {self.jurisdiction} ({self.financial_year}) not ready: {self.status}"
            )

    def has_mode(self, name: str) -> bool:
        return name in self.modes

    def resolve(self, name: str) -> Schedule:
        """Return the schedule that actually carries rows for ``name``."""
        try:
            mode = self.modes[name]
        except KeyError:
            raise ScheduleError(f"{self.jurisdiction} has no mode '{name}'") from None
        if mode.inherits is not None:
            return self.modes[mode.inherits]
        return mode

    def rows_for(self, name: str) -> tuple[BracketRow, ...]:
        return self.resolve(name).rows


@dataclass(frozen=True)
class RuleBook:
    """All rule sets for a period, keyed by upper-case jurisdiction code."""

    period: str
    rule_sets: Mapping[str, RuleSet] = field(default_factory=dict)

    @property
    def jurisdictions(self) -> list[str]:
        return sorted(self.rule_sets)

    def get(self, jurisdiction) -> RuleSet:
        if not isinstance(jurisdiction, str) or not jurisdiction.strip():
            raise InvalidInput(f"jurisdiction is required, got {jurisdiction!r}")
        code = jurisdiction.strip().upper()
        rule_set = self.rule_sets.get(code)
        if rule_set is None:
            raise UnsupportedJurisdiction(
                f"Unsupported jurisdiction '{jurisdiction}'. Supported: {self.jurisdictions}"
            )
        return rule_set


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _optional_decimal(data: dict, key: str) -> Decimal | None:
    value = data.get(key)
    return None if value is None else to_decimal(value, key)


def _raw_rows(mode_data: dict):
    """Accept ``schedule: [...]``, ``schedule: {brackets: [...]}`` or ``brackets: [...]``."""
    schedule = mode_data.get("schedule")
    if isinstance(schedule, list):
        return schedule
    if isinstance(schedule, dict) and isinstance(schedule.get("brackets"), list):
        return schedule["brackets"]
    if isinstance(mode_data.get("brackets"), list):
        return mode_data["brackets"]
    return None


def _parse_mode(name: str, mode_data) -> Schedule:
    if isinstance(mode_data, list):
        mode_data = {"schedule": mode_data}
    if not isinstance(mode_data, dict):
        raise ScheduleError(f"mode '{name}' must be a mapping")

    raw = _raw_rows(mode_data)
    inherits = mode_data.get("inherits")
    if raw is None and inherits is None:
        raise ScheduleError(f"mode '{name}' has neither a schedule nor 'inherits'")

    return Schedule(
        name=name,
        rows=normalize_rows(raw) if raw is not None else (),
        inherits=inherits if raw is None else None,
        price_cap=_optional_decimal(mode_data, "price_cap"),
        region=mode_data.get("region"),
    )


def _parse_formula(mode_data) -> ClosedFormFormula | None:
    if not isinstance(mode_data, dict) or "formula" not in mode_data:
        return None
    formula = mode_data["formula"]
    if formula.get("type") != "closed_form_poly":
        raise ScheduleError(f"unknown formula type {formula.get('type')!r}")
    coefficients = formula.get("coefficients")
    if not coefficients:
        raise ScheduleError("closed_form_poly requires coefficients")
    return ClosedFormFormula(
        max_applicable=to_decimal(formula.get("max_applicable"), "max_applicable"),
        unit=to_decimal(formula.get("unit", 1), "unit"),
        coefficients=tuple(to_decimal(c, "coefficient") for c in coefficients),
    )


def _parse_concession(data: dict, modes: Mapping[str, Schedule]) -> ConcessionRule:
    when = data.get("when", {})
    try:
        shape = TaperShape(data.get("taper_shape", TaperShape.LINEAR_TO_FULL.value))
    except ValueError:
        raise ScheduleError(f"unknown taper_shape {data.get('taper_shape')!r}") from None

    rule = ConcessionRule(
        property_type=when.get("property_type", ESTABLISHED),
        owner_occupier=when.get("owner_occupier"),
        full_exemption_up_to=to_decimal(data.get("full_exemption_up_to"), "full_exemption_up_to"),
        taper_end_price=_optional_decimal(data, "taper_end_price"),
        taper_shape=shape,
        basis_mode=data.get("basis_mode"),
        cap_price=_optional_decimal(data, "cap_price"),
        step_amount=_optional_decimal(data, "step_amount"),
        step_interval=_optional_decimal(data, "step_interval"),
    )

    if rule.basis_mode is not None and rule.basis_mode not in modes:
        raise ScheduleError(f"concession basis_mode '{rule.basis_mode}' is not a mode")
    if rule.taper_end_price is not None and rule.taper_end_price <= rule.full_exemption_up_to:
        raise ScheduleError("taper_end_price must exceed full_exemption_up_to")
    if shape is TaperShape.LINEAR_TO_CAP and rule.cap_price is None:
        raise ScheduleError("linear_to_cap concession requires cap_price")
    if shape is TaperShape.STEP_REBATE and (not rule.step_amount or not rule.step_interval):
        raise ScheduleError("step_rebate concession requires step_amount and step_interval")
    return rule


def _check_inheritance(modes: Mapping[str, Schedule]) -> None:
    """Single-level inheritance only: the target must carry its own rows."""
    for mode in modes.values():
        if mode.inherits is None:
            continue
        target = modes.get(mode.inherits)
        if target is None:
            raise ScheduleError(f"mode '{mode.name}' inherits unknown mode '{mode.inherits}'")
        if target.inherits is not None:
            raise ScheduleError(
                f"mode '{mode.name}' inherits '{target.name}', which itself inherits "
                f"'{target.inherits}'; only one level of inheritance is allowed"
            )


def dict_to_rule_set(data: dict, default_code: str | None = None) -> RuleSet:
    """Convert a parsed rule-table mapping into a RuleSet."""
    if not isinstance(data, dict):
        raise ScheduleError("rule table must be a mapping at the top level")

    meta = data.get("meta", {})
    code = str(meta.get("jurisdiction") or default_code or "").upper()
    if not code:
        raise ScheduleError("rule table has no meta.jurisdiction")

    raw_modes = data.get("modes") or {}
    modes = {name: _parse_mode(name, m) for name, m in raw_modes.items()}
    if ESTABLISHED not in modes:
        raise ScheduleError(f"{code} rule table has no '{ESTABLISHED}' mode")
    _check_inheritance(modes)

    fhb = data.get("fhb") or {}
    concessions = ()
    if fhb.get("enabled", True):
        concessions = tuple(_parse_concession(c, modes) for c in fhb.get("concessions", []))

    supports_oo = meta.get("supports_owner_occupier_mode")
    if supports_oo is None:
        supports_oo = OWNER_OCCUPIER in modes

    return RuleSet(
        jurisdiction=code,
        financial_year=str(meta.get("financial_year", "unknown FY")),
        status=meta.get("status", "ready"),
        supports_owner_occupier_mode=bool(supports_oo),
        primary_region=meta.get("primary_region", "metro"),
        modes=MappingProxyType(modes),
        concessions=concessions,
        formula=_parse_formula(raw_modes.get(ESTABLISHED)),
    )


def load_rule_file(path: str | Path) -> dict:
    """Read a YAML or JSON rule table."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ScheduleError(f"{path.name} must define a mapping at the top level")
    return data


def load_rule_set(path: str | Path) -> RuleSet:
    path = Path(path)
    try:
        return dict_to_rule_set(load_rule_file(path), default_code=path.stem)
    except ScheduleError as exc:
        raise ScheduleError(f"{path.name}: {exc}") from exc


@lru_cache(maxsize=8)
def load_rulebook(period: str = DEFAULT_PERIOD) -> RuleBook:
    """Load every rule table for ``period``; cached for the life of the process."""
    directory = RULES_DIR / period
    if not directory.is_dir():
        raise UnsupportedJurisdiction(f"No rule tables for period {period}")

    rule_sets = {}
    for path in sorted(directory.iterdir()):
        if path.suffix not in (".yaml", ".yml", ".json"):
            continue
        rule_set = load_rule_set(path)
        rule_sets[rule_set.jurisdiction] = rule_set

    logger.info("Loaded %d rule tables for %s", len(rule_sets), period)
    return RuleBook(period=period, rule_sets=MappingProxyType(rule_sets))
