"""Bridges between POMDP kernels/beliefs and the Bayesian filtering layer."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pomdpkit.core import Action, Belief, Observation, ObservationKernel, TransitionKernel
from pomdpkit.filtering import (
    BayesianFilter,
    ObservationModel,
    ProposalKernel,
    StateDistribution,
    TransitionModel,
)

StateT = TypeVar("StateT")
ActionT = TypeVar("ActionT")
ObservationT = TypeVar("ObservationT")


def _exp(log_value: float) -> float:
    try:
        return math.exp(log_value)
    except OverflowError:
        return math.inf


class BayesianFilterAdapter(ABC, Generic[StateT, ActionT, ObservationT]):
    """Runs a Bayesian filter on POMDP beliefs, translating in both directions."""

    def __init__(self, bayes_filter: BayesianFilter[StateT, ActionT, ObservationT]) -> None:
        self._filter = bayes_filter

    def update(self, prev: Belief, action: ActionT, observation: ObservationT) -> Belief:
        """Return the posterior belief after one filter step."""
        prev_dist = self.belief_to_distribution(prev)
        next_dist = self._filter.step(prev_dist, action, observation)
        return self.distribution_to_belief(next_dist)

    @abstractmethod
    def belief_to_distribution(self, belief: Belief) -> StateDistribution:
        """Translate a belief into the filter's distribution type."""

    @abstractmethod
    def distribution_to_belief(self, distribution: StateDistribution) -> Belief:
        """Translate a filter distribution back into a belief."""


class TransitionModelAdapter(TransitionModel[StateT, Action]):
    """Exposes a log-probability transition kernel as a probability model."""

    def __init__(self, kernel: TransitionKernel[StateT]) -> None:
        self._kernel = kernel

    def probability(self, next_state: StateT, current_state: StateT, control: Action) -> float:
        return _exp(self._kernel.transition_log_prob(next_state, current_state, control))


class ObservationModelAdapter(ObservationModel[StateT, Observation]):
    """Exposes a log-probability observation kernel as a likelihood model."""

    def __init__(self, kernel: ObservationKernel[StateT]) -> None:
        self._kernel = kernel

    def probability(self, observation: Observation, state: StateT) -> float:
        return _exp(self._kernel.observation_log_prob(observation, state))


class ProposalKernelAdapter(ProposalKernel[StateT, Action, Observation]):
    """Bootstrap proposal: samples via a proposal, scores with the transition model."""

    def __init__(
        self,
        proposal: ProposalKernel[StateT, Action, Observation],
        transition: TransitionModel[StateT, Action],
    ) -> None:
        self._proposal = proposal
        self._transition = transition

    def sample(self, prev_state: StateT, control: Action, observation: Observation) -> StateT:
        return self._proposal.sample(prev_state, control, observation)

    def probability(
        self,
        next_state: StateT,
        prev_state: StateT,
        control: Action,
        observation: Observation,
    ) -> float:
        return self._transition.probability(next_state, prev_state, control)