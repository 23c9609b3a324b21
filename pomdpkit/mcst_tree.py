"""Monte-Carlo search tree nodes, statistics and selection/expansion strategies."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable

from pomdpkit.core import Action, Belief, Observation
from pomdpkit.planning import ActionSampler


class SelectionError(Exception):
    """Raised when a strategy cannot select among existing actions."""


@dataclass
class Statistics:
    """Visit count and accumulated value of one action branch."""

    visits: int = 0
    value_sum: float = 0.0

    def update(self, value: float) -> None:
        """Record one more return."""
        self.visits += 1
        self.value_sum += value

    def mean(self) -> float:
        """Return the mean value, or 0.0 if never visited."""
        return self.value_sum / self.visits if self.visits > 0 else 0.0


@dataclass
class ActionEntry:
    """Statistics for one action, with an optional child node."""

    stats: Statistics = field(default_factory=Statistics)
    child: Node | None = None


@dataclass
class Node:
    """Search tree node holding per-action statistics; knows nothing of beliefs or dynamics."""

    actions: dict[Action, ActionEntry] = field(default_factory=dict)
    visits: int = 0

    def update(self, value: float) -> None:
        """Count one more visit to this node."""
        self.visits += 1

    def ensure_action(self, action: Action) -> ActionEntry:
        """Return the entry for ``action``, creating an empty one if missing."""
        return self.actions.setdefault(action, ActionEntry())


@dataclass
class PomcpNode:
    """Search node with action statistics and observation-indexed children."""

    action_node: Node = field(default_factory=Node)
    obs_children: dict[Action, dict[Observation, PomcpNode]] = field(default_factory=dict)

    def ensure_child(self, action: Action, observation: Observation) -> PomcpNode:
        """Return the child for (action, observation), creating it if missing."""
        by_obs = self.obs_children.setdefault(action, {})
        child = by_obs.get(observation)
        if child is None:
            child = PomcpNode()
            by_obs[observation] = child
        return child

    def get_child(self, action: Action, observation: Observation) -> PomcpNode | None:
        """Return the child for (action, observation), or None if absent."""
        return self.obs_children.get(action, {}).get(observation)


class SelectionStrategy(ABC):
    """Chooses among existing branches of a node and may propose new ones."""

    @abstractmethod
    def select_existing(self, node: Node) -> Action:
        """Select an action among the node's existing branches."""

    def propose_expansion(self, node: Node) -> Action | None:
        """Return a new action to expand, or None to leave the node as is."""
        return None


class SearchPolicy(ABC):
    """Selection/expansion policy that picks an action at a node."""

    @abstractmethod
    def select_action(self, node: Node) -> Action:
        """Select an action at the node."""

    def propose_expansion(self, node: Node) -> Action | None:
        """Return a new action to add, or None for no expansion."""
        return None


class CompositeSelection(SelectionStrategy):
    """Ordered combination of strategies.

    The first strategy proposing an expansion wins; otherwise the first
    strategy able to select an existing action decides.
    """

    def __init__(self, strategies: Iterable[SelectionStrategy] | None = None) -> None:
        self._strategies: list[SelectionStrategy] = list(strategies or ())

    def add_strategy(self, strategy: SelectionStrategy) -> None:
        """Append a strategy; order matters."""
        self._strategies.append(strategy)

    def propose_expansion(self, node: Node) -> Action | None:
        for strategy in self._strategies:
            action = strategy.propose_expansion(node)
            if action is not None:
                return action
        return None

    def select_existing(self, node: Node) -> Action:
        for strategy in self._strategies:
            try:
                return strategy.select_existing(node)
            except Exception:
                continue
        raise SelectionError("CompositeSelection: no strategy could select an action.")


class ProgressiveWidening(SelectionStrategy):
    """Expands while |A(s)| < k * (N(s) + 1) ** alpha; never selects existing actions."""

    def __init__(
        self, action_sampler: ActionSampler, k: float = 1.0, alpha: float = 0.5
    ) -> None:
        self._action_sampler = action_sampler
        self._k = k
        self._alpha = alpha
        self._dummy_belief = Belief()

    def select_existing(self, node: Node) -> Action:
        raise SelectionError("ProgressiveWidening does not select existing actions.")

    def propose_expansion(self, node: Node) -> Action | None:
        threshold = self._k * float(node.visits + 1) ** self._alpha
        if len(node.actions) < threshold:
            return self._action_sampler.sample_action(self._dummy_belief)
        return None


class UCBSelection(SelectionStrategy):
    """UCB1 over visited actions: mean + c * sqrt(ln(N + 1) / n)."""

    def __init__(self, exploration_constant: float = 1.4) -> None:
        self._c = exploration_constant

    def select_existing(self, node: Node) -> Action:
        best_action = Action()
        best_score = -math.inf
        log_parent = math.log(node.visits + 1)
        for action, entry in node.actions.items():
            stats = entry.stats
            if stats.visits == 0:
                continue
            score = stats.mean() + self._c * math.sqrt(log_parent / stats.visits)
            if score > best_score:
                best_score = score
                best_action = action
        return best_action