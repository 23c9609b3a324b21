"""Offline particle filtering in a ten-state discrete POMDP.

A fixed sequence of actions and observations is fed to a particle filter.
After each step the filter's effective sample size is reported.
"""

from __future__ import annotations

import argparse
import math
import random
import sys
from typing import Sequence

from pomdpkit.adapters import ObservationModelAdapter, TransitionModelAdapter
from pomdpkit.beliefs import ParticleBelief
from pomdpkit.core import (
    Action,
    Observation,
    ObservationKernel,
    POMDPModel,
    TransitionKernel,
)
from pomdpkit.filtering import Particle, ParticleFilter, ProposalKernel, SystematicResampler

NUM_MODEL_STATES = 10
_LOG_TEN = math.log(10.0)


class DiscreteModel(POMDPModel[int], TransitionKernel[int], ObservationKernel[int]):
    """Integer-state model: action ``a`` moves state ``x`` to ``(x + a) % 10``.

    Matching transitions and observations have log-probability 0; any other
    outcome has log-probability ``-log(10)``.
    """

    def transition(self) -> TransitionKernel[int]:
        return self

    def observation(self) -> ObservationKernel[int]:
        return self

    def transition_log_prob(self, next_state: int, prev_state: int, action: Action) -> float:
        expected = (prev_state + action.id) % NUM_MODEL_STATES
        return 0.0 if next_state == expected else -_LOG_TEN

    def observation_log_prob(self, observation: Observation, state: int) -> float:
        return 0.0 if observation.id == state else -_LOG_TEN

    def num_actions(self) -> int:
        """Return the number of available actions."""
        return 3


class SimplePriorProposal(ProposalKernel[int, Action, Observation]):
    """Naive proposal that keeps every particle where it is.

    The observation is ignored; the proposal is a point mass on the previous state.
    """

    def sample(self, prev_state: int, control: Action, observation: Observation | None) -> int:
        return prev_state

    def probability(
        self,
        next_state: int,
        prev_state: int,
        control: Action,
        observation: Observation | None,
    ) -> float:
        return 1.0 if next_state == prev_state else 0.0


def initial_belief(num_particles: int = 1000, num_states: int = 10) -> ParticleBelief[int]:
    """Return a uniformly weighted belief with particle ``i`` in state ``i % num_states``."""
    if num_particles <= 0:
        raise ValueError("num_particles must be positive")
    if num_states <= 0:
        raise ValueError("num_states must be positive")
    belief: ParticleBelief[int] = ParticleBelief(
        [Particle(i % num_states, 1.0 / num_particles) for i in range(num_particles)]
    )
    belief.normalize()
    return belief


def run_offline(
    belief: ParticleBelief[int],
    actions: Sequence[Action],
    observations: Sequence[Observation],
    ess_threshold: float = 0.5,
    seed: int | None = None,
) -> list[ParticleBelief[int]]:
    """Filter ``belief`` through the action/observation pairs; return the belief after each step."""
    if len(actions) != len(observations):
        raise ValueError("actions and observations must have the same length")

    model = DiscreteModel()
    pf: ParticleFilter[int, Action, Observation] = ParticleFilter(
        TransitionModelAdapter(model.transition()),
        ObservationModelAdapter(model.observation()),
        SimplePriorProposal(),
        SystematicResampler(random.Random(seed)),
        ess_threshold,
    )

    beliefs: list[ParticleBelief[int]] = []
    current = belief
    for action, observation in zip(actions, observations):
        current = pf.step(current, action, observation)  # type: ignore[assignment]
        beliefs.append(current)
    return beliefs


def _run_small(seed: int | None) -> None:
    actions = [Action(0), Action(1), Action(2)]
    observations = [Observation(1), Observation(2), Observation(3)]
    beliefs = run_offline(initial_belief(1000, 10), actions, observations, 0.5, seed)
    for t, b in enumerate(beliefs):
        print(f"t={t} ESS={b.effective_sample_size():g}")


def _run_large(seed: int | None) -> None:
    num_states, num_particles, horizon = 1000, 5000, 50
    model = DiscreteModel()
    actions = [Action(t % model.num_actions()) for t in range(horizon)]
    observations = [Observation((t * 37) % num_states) for t in range(horizon)]
    beliefs = run_offline(
        initial_belief(num_particles, num_states), actions, observations, 0.4, seed
    )
    for t, (b, action, obs) in enumerate(zip(beliefs, actions, observations)):
        print(
            f"t={t} obs={obs.id} particles={len(b.particles)}"
            f" ESS={b.effective_sample_size():g} action={action.id}"
        )


def main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point for the offline example."""
    parser = argparse.ArgumentParser(description="Offline particle filtering example.")
    parser.add_argument(
        "--large", action="store_true", help="run the large-scale configuration"
    )
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    args = parser.parse_args(argv)
    if args.large:
        _run_large(args.seed)
    else:
        _run_small(args.seed)
    return 0


if __name__ == "__main__":
    sys.exit(main())