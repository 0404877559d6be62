"""CLI entry point for the transfer duty and purchasing-power engine."""

import argparse
import json
import logging
import sys

import yaml

from stampduty.config import dict_to_inputs, inputs_to_dict, load_config
from stampduty.duty import default_engine, jurisdiction_features, supported_jurisdictions
from stampduty.errors import DutyError
from stampduty.output import duty_curve_csv, duty_report, result_to_dict, solver_report
from stampduty.params import BuyerFlags, FinancingInput, FinancingPolicy
from stampduty.sensitivity import duty_curve, format_sweep, frange, price_grid, sweep
from stampduty.solver import solve_max_price


def _flags_from_args(args: argparse.Namespace) -> BuyerFlags:
    return BuyerFlags(
        is_vacant_land=args.land,
        is_owner_occupier=args.owner_occupier,
        is_first_home_buyer=args.first_home,
        region=args.region,
    )


def _ask(prompt: str, default: str = "") -> str:
    suffix = f" [{default}]" if default else ""
    answer = input(f"{prompt}{suffix}: ").strip()
    return answer or default


def _ask_yes_no(prompt: str, default: bool = False) -> bool:
    answer = _ask(f"{prompt} (y/n)", "y" if default else "n")
    return answer.lower().startswith("y")


def _interactive_duty_query() -> tuple[str, float, BuyerFlags]:
    """Prompt for a duty query on stdin."""
    print(f"Supported: {', '.join(supported_jurisdictions())}")
    jurisdiction = _ask("Jurisdiction", "NSW").upper()
    try:
        price = float(_ask("Purchase price").replace(",", "").replace("$", ""))
    except ValueError:
        print("Error: price must be a number", file=sys.stderr)
        sys.exit(1)
    flags = BuyerFlags(
        is_vacant_land=_ask_yes_no("Vacant land?"),
        is_owner_occupier=_ask_yes_no("Owner-occupier?"),
        is_first_home_buyer=_ask_yes_no("First home buyer?"),
        region=_ask("Region (blank for primary)") or None,
    )
    return jurisdiction, price, flags


def cmd_duty(args: argparse.Namespace) -> None:
    """Calculate duty for one purchase."""
    if args.interactive:
        jurisdiction, price, flags = _interactive_duty_query()
    else:
        if args.jurisdiction is None or args.price is None:
            print("Error: duty needs JURISDICTION and PRICE (or --interactive)", file=sys.stderr)
            sys.exit(1)
        jurisdiction, price, flags = args.jurisdiction, args.price, _flags_from_args(args)

    result = default_engine().breakdown(jurisdiction, price, flags)
    if args.json:
        print(json.dumps({
            "jurisdiction": result.jurisdiction,
            "price": result.price,
            "mode": result.mode,
            "base_duty": result.base_duty,
            "duty": result.duty,
        }, indent=2))
    else:
        print(duty_report(result, flags))


def _inputs_from_args(args: argparse.Namespace) -> FinancingInput:
    data = inputs_to_dict(load_config(args.config)) if args.config else inputs_to_dict(FinancingInput())
    overrides = {
        "jurisdiction": args.jurisdiction,
        "borrowing_power": args.borrowing_power,
        "cash_on_hand": args.cash,
        "target_leverage": args.leverage,
        "financing_policy": args.policy,
        "contract_date": args.contract_date,
    }
    data.update({k: v for k, v in overrides.items() if v is not None})
    if args.fees:
        data["include_ancillary_fees"] = True
    if args.premium_from_cash:
        data["capitalise_premium"] = False

    buyer = data["buyer"]
    buyer["is_vacant_land"] = buyer["is_vacant_land"] or args.land
    buyer["is_owner_occupier"] = buyer["is_owner_occupier"] or args.owner_occupier
    buyer["is_first_home_buyer"] = buyer["is_first_home_buyer"] or args.first_home
    if args.region:
        buyer["region"] = args.region
    return dict_to_inputs(data)


def cmd_solve(args: argparse.Namespace) -> None:
    """Find the maximum affordable price."""
    inputs = _inputs_from_args(args)
    result = solve_max_price(inputs)
    if args.json:
        print(json.dumps(result_to_dict(result), indent=2))
    else:
        print(solver_report(result, inputs))


def cmd_features(args: argparse.Namespace) -> None:
    """Show what each jurisdiction's rule table supports."""
    codes = [args.jurisdiction] if args.jurisdiction else supported_jurisdictions()
    features = [jurisdiction_features(code) for code in codes]
    if args.json:
        print(json.dumps(features, indent=2))
        return
    for f in features:
        oo = "yes" if f["supports_owner_occupier_mode"] else "no"
        print(f"{f['jurisdiction']:<4} {f['financial_year']:<8} {f['status']:<6} owner-occupier: {oo:<3} "
              f"modes: {', '.join(f['modes'])}")


def cmd_curve(args: argparse.Namespace) -> None:
    """Print duty across a price range as CSV."""
    prices = price_grid(args.start, args.stop, args.points)
    duties = duty_curve(args.jurisdiction, prices, _flags_from_args(args))
    print(duty_curve_csv(prices, duties), end="")


def cmd_sweep(args: argparse.Namespace) -> None:
    """Re-solve the max price across values of one input."""
    inputs = _inputs_from_args(args)

    parts = args.range.split(",")
    if len(parts) != 3:
        print("Error: --range must be start,stop,step (e.g., 50000,200000,25000)", file=sys.stderr)
        sys.exit(1)

    start, stop, step = float(parts[0]), float(parts[1]), float(parts[2])
    values = frange(start, stop, step)

    results = sweep(inputs, args.param, values)
    print(format_sweep(args.param, results, is_percentage=args.param == "target_leverage"))


def cmd_defaults(args: argparse.Namespace) -> None:
    """Print default financing inputs as YAML."""
    print(yaml.safe_dump(inputs_to_dict(FinancingInput()), default_flow_style=False, sort_keys=False))


def _add_buyer_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--land", action="store_true", help="Vacant land purchase")
    parser.add_argument("--owner-occupier", action="store_true", help="Buyer will live in the property")
    parser.add_argument("--first-home", action="store_true", help="First home buyer")
    parser.add_argument("--region", help="Region key, e.g. metro or non_metro")


def _add_financing_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("config", nargs="?", help="YAML/JSON file of financing inputs")
    parser.add_argument("--jurisdiction", "-j", help="Jurisdiction code (e.g. NSW)")
    parser.add_argument("--borrowing-power", type=float, help="Maximum approved loan")
    parser.add_argument("--cash", type=float, help="Cash on hand")
    parser.add_argument("--leverage", type=float, help="Target loan / price (e.g. 0.9)")
    parser.add_argument("--policy", choices=[p.value for p in FinancingPolicy], help="Financing policy")
    parser.add_argument("--contract-date", help="Contract date YYYY-MM-DD (default today)")
    parser.add_argument("--fees", action="store_true", help="Include ancillary government fees")
    parser.add_argument("--premium-from-cash", action="store_true", help="Pay LMI upfront instead of capitalising")
    _add_buyer_flags(parser)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Australian transfer duty and purchasing-power calculator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  stampduty duty NSW 900000 --first-home          # Duty with concessions
  stampduty duty --interactive                    # Prompted query
  stampduty solve --cash 120000 --borrowing-power 650000 -j VIC
  stampduty solve scenario.yaml --json            # Inputs from a file
  stampduty features                              # What each jurisdiction supports
  stampduty curve QLD --start 300000 --stop 1200000
  stampduty sweep --param cash_on_hand --range 50000,200000,25000
  stampduty defaults                              # Print default inputs
""",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command")

    # duty
    duty_parser = subparsers.add_parser("duty", help="Calculate transfer duty")
    duty_parser.add_argument("jurisdiction", nargs="?", help="Jurisdiction code (e.g. NSW)")
    duty_parser.add_argument("price", nargs="?", type=float, help="Purchase price")
    duty_parser.add_argument("--interactive", "-i", action="store_true", help="Prompt for inputs")
    duty_parser.add_argument("--json", action="store_true", help="Output as JSON")
    _add_buyer_flags(duty_parser)

    # solve
    solve_parser = subparsers.add_parser("solve", help="Maximum affordable price")
    _add_financing_args(solve_parser)
    solve_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # features
    features_parser = subparsers.add_parser("features", help="Supported jurisdictions and modes")
    features_parser.add_argument("jurisdiction", nargs="?", help="One jurisdiction (default all)")
    features_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # curve
    curve_parser = subparsers.add_parser("curve", help="Duty across a price range (CSV)")
    curve_parser.add_argument("jurisdiction", help="Jurisdiction code")
    curve_parser.add_argument("--start", type=float, default=100_000)
    curve_parser.add_argument("--stop", type=float, default=2_000_000)
    curve_parser.add_argument("--points", type=int, default=96)
    _add_buyer_flags(curve_parser)

    # sweep
    sweep_parser = subparsers.add_parser("sweep", help="Max price across one input")
    _add_financing_args(sweep_parser)
    sweep_parser.add_argument("--param", required=True, help="FinancingInput field (e.g., cash_on_hand)")
    sweep_parser.add_argument("--range", required=True, help="start,stop,step (e.g., 50000,200000,25000)")

    # defaults
    subparsers.add_parser("defaults", help="Print default financing inputs")

    return parser


COMMANDS = {
    "duty": cmd_duty,
    "solve": cmd_solve,
    "features": cmd_features,
    "curve": cmd_curve,
    "sweep": cmd_sweep,
    "defaults": cmd_defaults,
}


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return

    try:
        command(args)
    except DutyError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
