"""Selection driver: filter → select → apply → execute → verify.

The selector owns a trial's ``ExecutionContext``. It lends filters a
read-only view to build the candidate set, hands the context once to the
chosen applier, and then passes it to the executor. A trial that finds
no eligible candidate runs the un-mutated baseline, which must succeed.
"""

from __future__ import annotations

import logging
import os
import random
import time
from dataclasses import dataclass, field
from typing import Iterable, Protocol

from orderfuzz.core.config import Settings, get_settings
from orderfuzz.core.errors import SelectionError
from orderfuzz.core.logging import trial_logging
from orderfuzz.core.types import FulfillmentAction
from orderfuzz.fuzzer.context import ExecutionContext, MutationState
from orderfuzz.fuzzer.expectations import ExpectedFailure, ObservedOutcome, verify_outcome
from orderfuzz.fuzzer.expectations import logger as expectations_logger
from orderfuzz.fuzzer.registry import (
    MutationKind,
    MutationRegistry,
    default_registry,
    parse_kind,
    parse_kinds,
)

logger = logging.getLogger(__name__)


class Executor(Protocol):
    """Performs the real call into the protocol under test."""

    def __call__(
        self, context: ExecutionContext, expected: ExpectedFailure | None
    ) -> ObservedOutcome: ...


@dataclass
class TrialResult:
    """Outcome of one trial."""

    trial_id: str
    action: FulfillmentAction
    mutation: MutationKind | None = None
    order_index: int | None = None
    expected: ExpectedFailure | None = None
    observed: ObservedOutcome | None = None
    candidates: dict[MutationKind, list[int]] = field(default_factory=dict)
    duration_ms: float = 0.0

    @property
    def baseline(self) -> bool:
        return self.mutation is None

    @property
    def executed(self) -> bool:
        return self.observed is not None

    def summary(self) -> dict[str, object]:
        return {
            "trial_id": self.trial_id,
            "action": self.action.value,
            "mutation": self.mutation.value if self.mutation else None,
            "order_index": self.order_index,
            "expected": str(self.expected) if self.expected else "success",
            "observed": str(self.observed) if self.observed else None,
            "candidates": {k.value: v for k, v in self.candidates.items()},
        }


class MutationSelector:
    """Chooses and applies at most one mutation per trial."""

    def __init__(
        self,
        registry: MutationRegistry | None = None,
        *,
        seed: int | None = None,
        policy: str = "uniform",
        weights: dict[MutationKind, float] | None = None,
        disabled: Iterable[MutationKind] = (),
        baseline_on_no_candidate: bool = True,
    ) -> None:
        if policy not in ("uniform", "weighted"):
            raise ValueError(f"Unknown selection policy: {policy}")
        if any(w < 0 for w in (weights or {}).values()):
            raise ValueError("Mutation weights must be >= 0")
        self.registry = registry if registry is not None else default_registry()
        self.rng = random.Random(seed if seed is not None else int.from_bytes(os.urandom(4), "big"))
        self.policy = policy
        self.weights = dict(weights or {})
        self.disabled = frozenset(disabled)
        self.baseline_on_no_candidate = baseline_on_no_candidate

    @classmethod
    def from_settings(
        cls, settings: Settings | None = None, registry: MutationRegistry | None = None
    ) -> MutationSelector:
        s = settings or get_settings()
        weights = {parse_kind(k): w for k, w in s.mutation_weights.items()}
        return cls(
            registry,
            seed=s.fuzz_seed,
            policy=s.selection_policy,
            weights=weights,
            disabled=parse_kinds(s.disabled_mutation_names),
            baseline_on_no_candidate=s.baseline_on_no_candidate,
        )

    def is_enabled(self, kind: MutationKind) -> bool:
        # Under the weighted policy a zero weight switches the kind off.
        if kind in self.disabled:
            return False
        return self.policy != "weighted" or self.weights.get(kind, 1.0) > 0

    # ── Filter phase ─────────────────────────────────────────────────

    def candidates(self, kind: MutationKind, context: ExecutionContext) -> list[int]:
        """Indices of orders the mutation can be applied to."""
        spec = self.registry.get(kind)
        view = context.view()
        return [
            i for i, order in enumerate(view.orders)
            if not spec.ineligible(order, i, view)
        ]

    def eligible_mutations(self, context: ExecutionContext) -> dict[MutationKind, list[int]]:
        eligible: dict[MutationKind, list[int]] = {}
        for spec in self.registry:
            if not self.is_enabled(spec.kind):
                continue
            indices = self.candidates(spec.kind, context)
            if indices:
                eligible[spec.kind] = indices
        return eligible

    # ── Selection ────────────────────────────────────────────────────

    def select(
        self,
        context: ExecutionContext,
        eligible: dict[MutationKind, list[int]] | None = None,
    ) -> tuple[MutationKind, MutationState] | None:
        if eligible is None:
            eligible = self.eligible_mutations(context)
        if not eligible:
            return None

        kinds = [k for k in eligible if self.is_enabled(k)]
        if not kinds:
            return None

        if self.policy == "weighted":
            kind_weights = [self.weights.get(k, 1.0) for k in kinds]
            kind = self.rng.choices(kinds, weights=kind_weights, k=1)[0]
        else:
            kind = self.rng.choice(kinds)

        state = MutationState()
        state.select(self.rng.choice(eligible[kind]), kind)
        return kind, state

    # ── Apply phase ──────────────────────────────────────────────────

    def apply(
        self, kind: MutationKind, context: ExecutionContext, state: MutationState
    ) -> ExpectedFailure:
        """Run the applier once and derive the revert it must cause."""
        if state.mutation is not None and state.mutation != kind:
            raise SelectionError(
                f"State selected for {state.mutation.value}, not {kind.value}",
                {"trial_id": context.trial_id},
            )
        spec = self.registry.get(kind)
        spec.apply(context, state)
        return spec.expect(context, state)

    # ── Trial ────────────────────────────────────────────────────────

    def run_trial(self, context: ExecutionContext, executor: Executor) -> TrialResult:
        """Run one trial end to end.

        Raises:
            OutcomeMismatchError: the executor observed a different outcome
                than the applied mutation (or the baseline) predicts.
            SelectionError: the context was already used by another trial.
        """
        if context.consumed:
            raise SelectionError(
                "Context already consumed by a previous trial", {"trial_id": context.trial_id}
            )

        with trial_logging(context.trial_id, context.action.value, logger, expectations_logger):
            return self._run_trial(context, executor)

    def _run_trial(self, context: ExecutionContext, executor: Executor) -> TrialResult:
        start = time.perf_counter()

        eligible = self.eligible_mutations(context)
        logger.debug(
            "Eligible mutations: %d kinds",
            len(eligible),
            extra={"candidates": {k.value: v for k, v in eligible.items()}},
        )

        result = TrialResult(
            trial_id=context.trial_id,
            action=context.action,
            candidates=eligible,
        )

        picked = self.select(context, eligible)
        if picked is None:
            if not self.baseline_on_no_candidate:
                logger.info("No eligible mutation, trial skipped")
                result.duration_ms = (time.perf_counter() - start) * 1000
                return result
            logger.info("No eligible mutation, running baseline")
            expected = None
        else:
            kind, state = picked
            result.mutation = kind
            result.order_index = state.order_index
            logger.info(
                "Applying %s to order %d",
                kind.value,
                state.order_index,
                extra={"mutation": kind.value, "order_index": state.order_index},
            )
            expected = self.apply(kind, context, state)

        result.expected = expected
        context.hand_off()
        observed = executor(context, expected)
        result.observed = observed
        result.duration_ms = (time.perf_counter() - start) * 1000

        verify_outcome(expected, observed)
        return result
