"""Monte-Carlo tree search planners with pluggable selection and rollout."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Callable, Generic, TypeVar

from pomdpkit.core import Action, Belief, History
from pomdpkit.mcst_tree import Node, PomcpNode, SelectionStrategy
from pomdpkit.planning import ActionSampler, BeliefSampler, Planner, Simulator

StateT = TypeVar("StateT")


class RolloutPolicy(ABC, Generic[StateT]):
    """Estimates the discounted return from a state and a first action."""

    @abstractmethod
    def rollout(
        self,
        state: StateT,
        first_action: Action,
        simulator: Simulator[StateT],
        horizon: int,
        discount: float,
    ) -> float:
        """Return the estimated cumulative discounted reward."""


class RandomRollout(RolloutPolicy[StateT]):
    """Simulates a fixed horizon, drawing every action after the first from a sampler."""

    def __init__(self, sample_action: Callable[[], Action]) -> None:
        self._sample_action = sample_action

    def rollout(
        self,
        state: StateT,
        first_action: Action,
        simulator: Simulator[StateT],
        horizon: int,
        discount: float,
    ) -> float:
        total = 0.0
        gamma = 1.0
        action = first_action
        for _ in range(horizon):
            result = simulator.step(state, action)
            total += gamma * result.reward
            gamma *= discount
            state = result.next_state
            action = self._sample_action()
        return total


def _best_visited(node: Node | None) -> Action:
    """Return the visited action with the highest mean value, or a default action."""
    best = Action()
    if node is None:
        return best
    best_value = -math.inf
    for action, entry in node.actions.items():
        if entry.stats.visits == 0:
            continue
        mean = entry.stats.mean()
        if mean > best_value:
            best_value = mean
            best = action
    return best


def _select_or_expand(
    node: Node,
    selection: SelectionStrategy,
    action_sampler: ActionSampler,
    belief: Belief,
) -> Action:
    proposed = selection.propose_expansion(node)
    if proposed is not None:
        node.ensure_action(proposed)
        return proposed
    if node.actions:
        return selection.select_existing(node)
    action = action_sampler.sample_action(belief)
    node.ensure_action(action)
    return action


class MCSTPlanner(Planner, Generic[StateT]):
    """Depth-one Monte-Carlo search: one simulation per call, anytime best action."""

    def __init__(
        self,
        belief_sampler: BeliefSampler[StateT],
        action_sampler: ActionSampler,
        simulator: Simulator[StateT],
        selection: SelectionStrategy,
        rollout_policy: RolloutPolicy[StateT],
        horizon: int,
        discount: float = 1.0,
    ) -> None:
        self._belief_sampler = belief_sampler
        self._action_sampler = action_sampler
        self._simulator = simulator
        self._selection = selection
        self._rollout_policy = rollout_policy
        self._horizon = horizon
        self._discount = discount
        self._root: Node | None = None

    def run_simulation(self, belief: Belief) -> None:
        """Perform one simulation from a state sampled out of ``belief``."""
        if self._root is None:
            self._root = Node()
        root = self._root
        state = self._belief_sampler.sample_state(belief)
        action = _select_or_expand(root, self._selection, self._action_sampler, belief)
        value = self._rollout_policy.rollout(
            state, action, self._simulator, self._horizon, self._discount
        )
        root.ensure_action(action).stats.update(value)
        root.update(value)

    def best_action(self) -> Action:
        """Return the visited root action with the highest mean value."""
        return _best_visited(self._root)

    def decide(self, belief: Belief, history: History) -> Action:
        self.run_simulation(belief)
        return self.best_action()


class PomcpPlanner(Planner, Generic[StateT]):
    """POMCP-style planner with action and observation branching at the root."""

    def __init__(
        self,
        belief_sampler: BeliefSampler[StateT],
        action_sampler: ActionSampler,
        simulator: Simulator[StateT],
        selection: SelectionStrategy,
        rollout_policy: RolloutPolicy[StateT],
        horizon: int,
        discount: float = 1.0,
    ) -> None:
        self._belief_sampler = belief_sampler
        self._action_sampler = action_sampler
        self._simulator = simulator
        self._selection = selection
        self._rollout_policy = rollout_policy
        self._horizon = horizon
        self._discount = discount
        self._root = PomcpNode()
        self._dummy_belief = Belief()

    def run_simulation(self, belief: Belief) -> None:
        """Perform one simulation from a state sampled out of ``belief``."""
        state = self._belief_sampler.sample_state(belief)
        self._simulate(self._root, state, 0)

    def best_action(self) -> Action:
        """Return the visited root action with the highest mean value."""
        return _best_visited(self._root.action_node)

    def decide(self, belief: Belief, history: History) -> Action:
        self.run_simulation(belief)
        return self.best_action()

    def _simulate(self, node: PomcpNode, state: StateT, depth: int) -> float:
        if depth >= self._horizon:
            return 0.0

        action = _select_or_expand(
            node.action_node, self._selection, self._action_sampler, self._dummy_belief
        )
        result = self._simulator.step(state, action)
        node.ensure_child(action, result.observation)

        future = self._rollout_policy.rollout(
            result.next_state,
            action,
            self._simulator,
            self._horizon - depth - 1,
            self._discount,
        )
        total = result.reward + self._discount * future

        node.action_node.ensure_action(action).stats.update(total)
        node.action_node.update(total)
        return total