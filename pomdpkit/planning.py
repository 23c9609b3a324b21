"""Planning interfaces: generative simulators, samplers, planners and an anytime runner."""

from __future__ import annotations

import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from typing import Generic, TypeVar

from pomdpkit.core import Action, Belief, History, Observation

StateT = TypeVar("StateT")


@dataclass
class SimulationResult(Generic[StateT]):
    """Outcome of one generative step."""

    next_state: StateT
    observation: Observation
    reward: float


class Simulator(ABC, Generic[StateT]):
    """Generative model used by planners."""

    @abstractmethod
    def step(self, state: StateT, action: Action) -> SimulationResult[StateT]:
        """Sample the successor state, observation and reward."""


class ActionSampler(ABC):
    """Proposes candidate actions for search."""

    @abstractmethod
    def sample_action(self, belief: Belief) -> Action:
        """Sample an action given the current belief."""

    def sample_action_from_state(self, state: object) -> Action:
        """Sample an action for a hypothetical state.

        By default the state is ignored and an action is drawn without
        consulting any belief.
        """
        return self.sample_action(Belief())


class BeliefSampler(ABC, Generic[StateT]):
    """Draws hypothetical states from a belief."""

    @abstractmethod
    def sample_state(self, belief: Belief) -> StateT:
        """Return one state drawn from the belief."""


class Planner(ABC):
    """Chooses the next action from the current belief and history."""

    @abstractmethod
    def decide(self, belief: Belief, history: History) -> Action:
        """Decide the next action."""


def _seconds(duration: float | timedelta) -> float:
    if isinstance(duration, timedelta):
        return duration.total_seconds()
    return float(duration)


class PlannerRunner:
    """Drives a planner under an iteration or wall-clock budget."""

    def __init__(self, planner: Planner) -> None:
        self._planner = planner

    def run_iterations(
        self, belief: Belief, history: History, max_iterations: int
    ) -> Action:
        """Call the planner ``max_iterations`` times; return its last answer."""
        last_action = Action()
        for _ in range(max_iterations):
            last_action = self._planner.decide(belief, history)
        return last_action

    def run_for_duration(
        self, belief: Belief, history: History, duration: float | timedelta
    ) -> Action:
        """Call the planner until ``duration`` (seconds or timedelta) has elapsed."""
        budget = _seconds(duration)
        start = time.monotonic()
        last_action = Action()
        while time.monotonic() - start < budget:
            last_action = self._planner.decide(belief, history)
        return last_action

    def step(self, belief: Belief, history: History) -> Action:
        """Run a single planner call."""
        return self._planner.decide(belief, history)


class RandomShootingPlanner(Planner, Generic[StateT]):
    """One-step lookahead: sample actions and states, score each by a fixed-horizon rollout."""

    def __init__(
        self,
        belief_sampler: BeliefSampler[StateT],
        action_sampler: ActionSampler,
        simulator: Simulator[StateT],
        num_action_samples: int,
        horizon: int,
        discount: float = 1.0,
    ) -> None:
        self._belief_sampler = belief_sampler
        self._action_sampler = action_sampler
        self._simulator = simulator
        self._num_action_samples = num_action_samples
        self._horizon = horizon
        self._discount = discount

    def decide(self, belief: Belief, history: History) -> Action:
        best_action = Action()
        best_value = -math.inf
        for _ in range(self._num_action_samples):
            action = self._action_sampler.sample_action(belief)
            state = self._belief_sampler.sample_state(belief)
            value = self._rollout(state, action)
            if value > best_value:
                best_value = value
                best_action = action
        return best_action

    def _rollout(self, state: StateT, first_action: Action) -> float:
        total = 0.0
        gamma = 1.0
        action = first_action
        for _ in range(self._horizon):
            result = self._simulator.step(state, action)
            total += gamma * result.reward
            gamma *= self._discount
            state = result.next_state
            action = self._action_sampler.sample_action_from_state(state)
        return total