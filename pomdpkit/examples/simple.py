"""Minimal belief-update and policy loop with integer beliefs."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from typing import Iterable, Sequence

from pomdpkit.core import Action, Belief, BeliefUpdater, History, Observation, Policy

DEFAULT_OBSERVATIONS = (1, -2, 3)


@dataclass
class IntBelief(Belief):
    """Belief summarised by a single integer."""

    value: int = 0


@dataclass(frozen=True)
class IntObservation(Observation):
    """Observation carrying an integer value."""

    value: int = 0


@dataclass(frozen=True)
class IntAction(Action):
    """Action carrying an integer value."""

    value: int = 0


class EmptyHistory(History):
    """History that records nothing."""


class SimpleUpdater(BeliefUpdater):
    """Adds the observed value to the belief value."""

    def update(
        self,
        prev: Belief,
        last_action: Action,
        observation: Observation,
        history: History,
    ) -> IntBelief:
        if not isinstance(prev, IntBelief):
            raise TypeError(f"SimpleUpdater needs an IntBelief, got {type(prev).__name__}")
        if not isinstance(observation, IntObservation):
            raise TypeError(
                f"SimpleUpdater needs an IntObservation, got {type(observation).__name__}"
            )
        return IntBelief(prev.value + observation.value)


class ThresholdPolicy(Policy):
    """Chooses action 1 when the belief value is positive, otherwise -1."""

    def decide(self, belief: Belief, history: History) -> IntAction:
        if not isinstance(belief, IntBelief):
            raise TypeError(f"ThresholdPolicy needs an IntBelief, got {type(belief).__name__}")
        return IntAction(value=1 if belief.value > 0 else -1)


def run(observations: Iterable[int] = DEFAULT_OBSERVATIONS) -> list[tuple[int, int]]:
    """Feed the observations through updater and policy; return (belief, action) per step."""
    updater = SimpleUpdater()
    policy = ThresholdPolicy()
    history = EmptyHistory()
    belief: Belief = IntBelief(0)
    steps: list[tuple[int, int]] = []
    for value in observations:
        belief = updater.update(belief, IntAction(value=0), IntObservation(value=value), history)
        action = policy.decide(belief, history)
        steps.append((belief.value, action.value))
    return steps


def main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point for the simple example."""
    parser = argparse.ArgumentParser(description="Integer belief update example.")
    parser.add_argument(
        "observations",
        nargs="*",
        type=int,
        default=list(DEFAULT_OBSERVATIONS),
        help="integer observations to process",
    )
    args = parser.parse_args(argv)
    for belief_value, action_value in run(args.observations):
        print(f"belief={belief_value}, action={action_value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())