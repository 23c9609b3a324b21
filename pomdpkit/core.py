"""Core POMDP vocabulary: actions, observations, beliefs, histories and model interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, Iterator, TypeVar

StateT = TypeVar("StateT")


@dataclass(frozen=True)
class Action:
    """Opaque action handle identified by an integer."""

    id: int = 0


@dataclass(frozen=True)
class Observation:
    """Opaque observation handle identified by an integer."""

    id: int = 0


class Belief:
    """Base type for every representation of the agent's epistemic state."""


class History:
    """Base type for the agent's record of past interaction."""


@dataclass(frozen=True)
class HistoryEntry:
    """One executed action together with the observation that followed it."""

    action: Action
    observation: Observation


class SequenceHistory(History):
    """History kept as the ordered sequence of (action, observation) pairs."""

    def __init__(self) -> None:
        self._entries: list[HistoryEntry] = []

    def append(self, action: Action, observation: Observation) -> None:
        """Record an action and the observation received after it."""
        self._entries.append(HistoryEntry(action, observation))

    def entries(self) -> tuple[HistoryEntry, ...]:
        """Return the recorded entries, oldest first."""
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(tuple(self._entries))


class Policy(ABC):
    """Decision rule mapping a belief and history to an action."""

    @abstractmethod
    def decide(self, belief: Belief, history: History) -> Action:
        """Choose the next action."""


class BeliefUpdater(ABC):
    """Computes the posterior belief after acting and observing."""

    @abstractmethod
    def update(
        self,
        prev: Belief,
        last_action: Action,
        observation: Observation,
        history: History,
    ) -> Belief:
        """Return the updated belief."""


class TransitionKernel(ABC, Generic[StateT]):
    """Transition kernel p(x' | x, a)."""

    @abstractmethod
    def transition_log_prob(
        self, next_state: StateT, prev_state: StateT, action: Action
    ) -> float:
        """Return log p(next_state | prev_state, action)."""


class ObservationKernel(ABC, Generic[StateT]):
    """Observation kernel p(o | x')."""

    @abstractmethod
    def observation_log_prob(self, observation: Observation, state: StateT) -> float:
        """Return log p(observation | state)."""


class POMDPModel(ABC, Generic[StateT]):
    """A POMDP described by its transition and observation kernels."""

    @abstractmethod
    def transition(self) -> TransitionKernel[StateT]:
        """Return the transition kernel."""

    @abstractmethod
    def observation(self) -> ObservationKernel[StateT]:
        """Return the observation kernel."""