"""Online planning in a continuous 2-D point-mass world.

A particle filter tracks the hidden state while a Monte-Carlo search planner
with progressive widening and UCB picks continuous accelerations.
"""

from __future__ import annotations

import argparse
import math
import random
import sys
from datetime import timedelta
from typing import Sequence, TextIO, Tuple

from pomdpkit.beliefs import ParticleBelief
from pomdpkit.core import (
    Action,
    Belief,
    Observation,
    ObservationKernel,
    POMDPModel,
    SequenceHistory,
    TransitionKernel,
)
from pomdpkit.adapters import (
    ObservationModelAdapter,
    ProposalKernelAdapter,
    TransitionModelAdapter,
)
from pomdpkit.filtering import (
    Particle,
    ParticleFilter,
    ProposalKernel,
    SystematicResampler,
)
from pomdpkit.mcst_planners import MCSTPlanner, RandomRollout
from pomdpkit.mcst_tree import CompositeSelection, ProgressiveWidening, UCBSelection
from pomdpkit.planning import (
    ActionSampler,
    BeliefSampler,
    PlannerRunner,
    SimulationResult,
    Simulator,
)

State = Tuple[float, float, float, float]
"""State vector: (px, py, vx, vy)."""

Control = Tuple[float, float]
"""Continuous control: acceleration (ax, ay)."""

TRANSITION_STD = 0.05
OBSERVATION_STD = 0.1
CELL_SIZE = 0.5

_LOG_SQRT_2PI = 0.5 * math.log(2.0 * math.pi)


def _normal_log_prob(x: float, stddev: float) -> float:
    return -_LOG_SQRT_2PI - math.log(stddev) - 0.5 * (x * x) / (stddev * stddev)


class ContinuousActionSampler(ActionSampler):
    """Samples uniform accelerations and keeps a registry from action id to control."""

    def __init__(self, a_max: float = 1.0, rng: random.Random | None = None) -> None:
        self._a_max = a_max
        self._rng = rng if rng is not None else random.Random()
        self._next_id = 1
        self._table: dict[int, Control] = {}

    def _draw(self) -> Action:
        control = (
            self._rng.uniform(-self._a_max, self._a_max),
            self._rng.uniform(-self._a_max, self._a_max),
        )
        action = Action(self._next_id)
        self._next_id += 1
        self._table[action.id] = control
        return action

    def sample_random_action(self) -> Action:
        """Draw a fresh random action without consulting any belief."""
        return self._draw()

    def sample_action(self, belief: Belief) -> Action:
        """Draw a fresh random action; the belief is ignored."""
        return self._draw()

    def action_value(self, action: Action) -> Control:
        """Return the control vector registered for ``action``; KeyError if unknown."""
        return self._table[action.id]


class PFBeliefSampler(BeliefSampler[State]):
    """Draws one particle's state from a particle belief in proportion to its weight."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng if rng is not None else random.Random()

    def sample_state(self, belief: Belief) -> State:
        if not isinstance(belief, ParticleBelief):
            raise TypeError(
                f"PFBeliefSampler needs a ParticleBelief, got {type(belief).__name__}"
            )
        particles = belief.particles
        if not particles:
            raise ValueError("cannot sample from a belief without particles")
        r = self._rng.random()
        accum = 0.0
        for p in particles:
            accum += p.weight
            if r <= accum:
                return p.state
        return particles[-1].state


class ContinuousModel(
    POMDPModel[State],
    TransitionKernel[State],
    ObservationKernel[State],
    Simulator[State],
):
    """Noisy double-integrator in the plane with grid-cell position observations.

    Acts as the probabilistic model for filtering and as the generative
    simulator for planning. Reward is the negative distance from the origin.
    """

    def __init__(
        self,
        action_sampler: ContinuousActionSampler,
        dt: float = 0.1,
        rng: random.Random | None = None,
    ) -> None:
        self._action_sampler = action_sampler
        self._dt = dt
        self._rng = rng if rng is not None else random.Random()

    def transition(self) -> TransitionKernel[State]:
        return self

    def observation(self) -> ObservationKernel[State]:
        return self

    def _mean(self, prev: Sequence[float], action: Action) -> State:
        ax, ay = self._action_sampler.action_value(action)
        dt = self._dt
        return (
            prev[0] + prev[2] * dt,
            prev[1] + prev[3] * dt,
            prev[2] + ax * dt,
            prev[3] + ay * dt,
        )

    def transition_log_prob(
        self, next_state: State, prev_state: State, action: Action
    ) -> float:
        mean = self._mean(prev_state, action)
        return sum(
            _normal_log_prob(x - m, TRANSITION_STD) for x, m in zip(next_state, mean)
        )

    def observation_log_prob(self, observation: Observation, state: State) -> float:
        return 0.0 if observation.id == self.position_to_obs_id(state) else -math.inf

    def position_to_obs_id(self, state: State) -> int:
        """Encode the grid cell holding the position as (gx << 32) | (gy & 0xffffffff)."""
        gx = math.floor(state[0] / CELL_SIZE)
        gy = math.floor(state[1] / CELL_SIZE)
        return (gx << 32) | (gy & 0xFFFFFFFF)

    def step(self, state: State, action: Action) -> SimulationResult[State]:
        mean = self._mean(state, action)
        next_state: State = tuple(  # type: ignore[assignment]
            m + self._rng.gauss(0.0, TRANSITION_STD) for m in mean
        )
        observation = Observation(self.position_to_obs_id(next_state))
        reward = -math.hypot(next_state[0], next_state[1])
        return SimulationResult(next_state, observation, reward)


class BootstrapProposal(ProposalKernel[State, Action, Observation]):
    """Proposal that samples from the transition model and ignores the observation."""

    def __init__(self, model: ContinuousModel) -> None:
        self._model = model

    def sample(
        self, prev_state: State, control: Action, observation: Observation
    ) -> State:
        return self._model.step(prev_state, control).next_state

    def probability(
        self,
        next_state: State,
        prev_state: State,
        control: Action,
        observation: Observation,
    ) -> float:
        return math.exp(self._model.transition_log_prob(next_state, prev_state, control))


def run_online(
    num_steps: int = 100,
    num_particles: int = 500,
    seed: int | None = None,
    out: TextIO | None = None,
) -> list[tuple[tuple[float, float], Control]]:
    """Run the filter-and-plan loop; return the true position and chosen control per step."""
    stream = out if out is not None else sys.stdout
    master = random.Random(seed)

    action_sampler = ContinuousActionSampler(1.0, random.Random(master.random()))
    belief_sampler = PFBeliefSampler(random.Random(master.random()))
    model = ContinuousModel(action_sampler, 0.1, random.Random(master.random()))

    belief: ParticleBelief[State] = ParticleBelief(
        [Particle((0.0, 0.0, 0.0, 0.0), 1.0 / num_particles) for _ in range(num_particles)]
    )

    proposal = BootstrapProposal(model)
    resampler: SystematicResampler[State] = SystematicResampler(
        random.Random(42 if seed is None else seed)
    )
    transition_model = TransitionModelAdapter(model.transition())
    observation_model = ObservationModelAdapter(model.observation())
    proposal_adapter = ProposalKernelAdapter(proposal, transition_model)
    pf = ParticleFilter(
        transition_model, observation_model, proposal_adapter, resampler, 0.5
    )

    rollout: RandomRollout[State] = RandomRollout(action_sampler.sample_random_action)
    selection = CompositeSelection()
    selection.add_strategy(ProgressiveWidening(action_sampler, k=1.0, alpha=0.5))
    selection.add_strategy(UCBSelection(1.4))

    planner: MCSTPlanner[State] = MCSTPlanner(
        belief_sampler, action_sampler, model, selection, rollout, 15, 0.95
    )
    runner = PlannerRunner(planner)

    history = SequenceHistory()
    action = action_sampler.sample_random_action()
    true_state: State = (0.0, 0.0, 0.0, 0.0)
    records: list[tuple[tuple[float, float], Control]] = []

    for t in range(num_steps):
        result = model.step(true_state, action)
        true_state = result.next_state
        obs = result.observation

        belief = pf.step(belief, action, obs)  # type: ignore[assignment]

        runner.run_for_duration(belief, history, timedelta(milliseconds=10))
        action = planner.best_action()
        u = action_sampler.action_value(action)

        stream.write(
            f"t={t}  true_pos=({true_state[0]:g}, {true_state[1]:g})"
            f" action=({u[0]:g}, {u[1]:g}) \n"
        )
        records.append(((true_state[0], true_state[1]), u))
        history.append(action, obs)

    return records


def main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point for the online example."""
    parser = argparse.ArgumentParser(description="Online particle filter + MCST planning.")
    parser.add_argument("--steps", type=int, default=100, help="number of control steps")
    parser.add_argument("--particles", type=int, default=500, help="number of particles")
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    args = parser.parse_args(argv)
    if args.particles <= 0:
        parser.error("--particles must be positive")
    run_online(args.steps, args.particles, args.seed, sys.stdout)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())