"""orderfuzz CLI: inspect mutation eligibility for an order batch.

Usage:
    orderfuzz mutations                     List mutation kinds and the revert each induces
    orderfuzz eligible <fixture.json>       Show candidate order indices per mutation kind
    orderfuzz plan <fixture.json>           Select and apply one mutation, print the result
    orderfuzz config                        Show current configuration

Examples:
    orderfuzz eligible batch.json --action fulfillAdvancedOrder
    orderfuzz plan batch.json --seed 7 --format json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from orderfuzz.core.config import get_settings
from orderfuzz.core.errors import FixtureError, OrderFuzzError
from orderfuzz.core.logging import setup_logging
from orderfuzz.core.types import FulfillmentAction, TrialFixture
from orderfuzz.fuzzer.context import ExecutionContext
from orderfuzz.fuzzer.registry import MutationKind, default_registry
from orderfuzz.fuzzer.selector import MutationSelector

VERSION = "0.3.0"

logger = logging.getLogger(__name__)

# ── Coloured output helpers ──────────────────────────────────────────────────

_RESET = "\033[0m"
_BOLD = "\033[1m"
_RED = "\033[91m"
_YELLOW = "\033[93m"
_GREEN = "\033[92m"
_DIM = "\033[2m"


def _c(text: str, code: str) -> str:
    return f"{code}{text}{_RESET}"


# Revert each kind induces, for display only; the real value is derived per trial.
_INDUCED = {
    MutationKind.INVALID_SIGNATURE: "InvalidSignature()",
    MutationKind.INVALID_SIGNER_BAD_SIGNATURE: "InvalidSigner()",
    MutationKind.INVALID_SIGNER_MODIFIED_ORDER: "InvalidSigner()",
    MutationKind.BAD_SIGNATURE_V: "BadSignatureV(255)",
    MutationKind.INVALID_TIME_NOT_STARTED: "InvalidTime(start, end)",
    MutationKind.INVALID_TIME_EXPIRED: "InvalidTime(start, end)",
    MutationKind.BAD_FRACTION_NO_FILL: "BadFraction()",
    MutationKind.BAD_FRACTION_OVERFILL: "BadFraction()",
    MutationKind.ORDER_IS_CANCELLED: "OrderIsCancelled(orderHash)",
}


# ── CLI argument parser ─────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="orderfuzz",
        description="orderfuzz: negative-path mutation fuzzing for order fulfillment",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("mutations", help="List mutation kinds")

    actions = [a.value for a in FulfillmentAction]

    # ── eligible ─────────────────────────────────────────────────────────────
    elig_p = sub.add_parser("eligible", help="Show candidate orders per mutation kind")
    elig_p.add_argument("fixture", help="Path to trial fixture JSON")
    elig_p.add_argument("--action", choices=actions, help="Override the fixture's action")
    elig_p.add_argument(
        "--format", "-f", default="table", choices=["table", "json"],
        help="Output format (default: table)",
    )

    # ── plan ─────────────────────────────────────────────────────────────────
    plan_p = sub.add_parser("plan", help="Select and apply one mutation to a fixture")
    plan_p.add_argument("fixture", help="Path to trial fixture JSON")
    plan_p.add_argument("--action", choices=actions, help="Override the fixture's action")
    plan_p.add_argument("--seed", type=int, help="Selection seed (default: from settings)")
    plan_p.add_argument(
        "--format", "-f", default="table", choices=["table", "json"],
        help="Output format (default: table)",
    )

    sub.add_parser("config", help="Show current configuration")

    return parser


# ── Fixture loading ──────────────────────────────────────────────────────────


def load_fixture(path: str, action: str | None = None) -> TrialFixture:
    p = Path(path)
    if not p.is_file():
        raise FixtureError(f"Fixture not found: {path}", {"path": path})
    try:
        fixture = TrialFixture.model_validate_json(p.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise FixtureError(
            f"Invalid fixture {path}: {exc.error_count()} error(s)",
            {"path": path, "errors": exc.errors(include_url=False)},
        ) from exc
    if action:
        fixture.action = FulfillmentAction(action)
    return fixture


# ── Commands ─────────────────────────────────────────────────────────────────


def _run_mutations() -> int:
    print(f"\n{_BOLD}Mutation kinds{_RESET}\n")
    for spec in default_registry():
        print(f"  {spec.kind.value:<32s} {_DIM}→ {_INDUCED[spec.kind]}{_RESET}")
    print()
    return 0


def _run_eligible(args: argparse.Namespace) -> int:
    fixture = load_fixture(args.fixture, args.action)
    context = ExecutionContext.from_fixture(fixture)
    selector = MutationSelector.from_settings(get_settings())
    table = {
        spec.kind: selector.candidates(spec.kind, context)
        for spec in selector.registry
        if selector.is_enabled(spec.kind)
    }
    disabled = [spec.kind for spec in selector.registry if not selector.is_enabled(spec.kind)]

    if args.format == "json":
        print(json.dumps(
            {
                "action": context.action.value,
                "candidates": {k.value: v for k, v in table.items()},
                "disabled": [k.value for k in disabled],
            },
            indent=2,
        ))
        return 0

    print(f"\n{_BOLD}{len(context.orders)} orders{_RESET} · action {context.action.value}\n")
    for kind, indices in table.items():
        shown = ", ".join(str(i) for i in indices) if indices else _c("none", _DIM)
        color = _GREEN if indices else _DIM
        print(f"  {_c(f'{kind.value:<32s}', color)} {shown}")
    for kind in disabled:
        print(f"  {_c(f'{kind.value:<32s}', _DIM)} {_c('disabled', _DIM)}")
    print()
    return 0


def _run_plan(args: argparse.Namespace) -> int:
    fixture = load_fixture(args.fixture, args.action)
    context = ExecutionContext.from_fixture(fixture)
    settings = get_settings()
    if args.seed is not None:
        settings = settings.model_copy(update={"fuzz_seed": args.seed})
    selector = MutationSelector.from_settings(settings)

    picked = selector.select(context)
    plan: dict[str, Any] = {
        "action": context.action.value,
        "mutation": None,
        "baseline": picked is None and selector.baseline_on_no_candidate,
    }
    if picked is not None:
        kind, state = picked
        expected = selector.apply(kind, context, state)
        plan.update({
            "mutation": kind.value,
            "order_index": state.order_index,
            "expected": str(expected),
            "order": context.orders[state.order_index].model_dump(mode="json"),
        })

    if args.format == "json":
        print(json.dumps(plan, indent=2))
        return 0

    if picked is None:
        if plan["baseline"]:
            print(_c("No eligible mutation, baseline run expected to succeed.", _YELLOW))
        else:
            print(_c("No eligible mutation, trial skipped.", _YELLOW))
        return 0
    print(f"\n{_BOLD}{plan['mutation']}{_RESET} on order {plan['order_index']}")
    print(f"  expected revert: {_c(plan['expected'], _RED)}\n")
    return 0


def _run_config() -> int:
    s = get_settings()
    print(f"\n{_BOLD}orderfuzz configuration{_RESET}\n")
    for field_name in sorted(type(s).model_fields.keys()):
        print(f"  {_DIM}{field_name}:{_RESET}  {getattr(s, field_name, '')}")
    print()
    return 0


# ── Entrypoint ───────────────────────────────────────────────────────────────


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"orderfuzz {VERSION}")
        return 0

    settings = get_settings()
    setup_logging(settings.app_env, "DEBUG" if args.verbose else settings.log_level)

    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == "mutations":
            return _run_mutations()
        if args.command == "eligible":
            return _run_eligible(args)
        if args.command == "plan":
            return _run_plan(args)
        if args.command == "config":
            return _run_config()
    except OrderFuzzError as exc:
        logger.debug("Command failed", exc_info=True)
        print(_c(f"Error [{exc.code.value}]: {exc.message}", _RED), file=sys.stderr)
        return 1

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
