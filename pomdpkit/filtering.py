"""Bayesian filtering: particle distributions, resampling and the particle filter."""

from __future__ import annotations

import copy
import math
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Generic, Sequence, TypeVar

StateT = TypeVar("StateT")
ControlT = TypeVar("ControlT")
ObservationT = TypeVar("ObservationT")


@dataclass
class Particle(Generic[StateT]):
    """A weighted state hypothesis."""

    state: StateT
    weight: float


class StateDistribution(ABC):
    """Probability distribution over a latent state."""

    @abstractmethod
    def clone(self) -> StateDistribution:
        """Return an independent copy."""


@dataclass
class ParticleDistribution(StateDistribution, Generic[StateT]):
    """Distribution represented by weighted particles."""

    particles: list[Particle[StateT]] = field(default_factory=list)

    def normalize(self) -> None:
        """Scale weights to sum to one; leaves them alone if the sum is not positive."""
        total = sum(p.weight for p in self.particles)
        if total <= 0.0:
            return
        for p in self.particles:
            p.weight /= total

    def effective_sample_size(self) -> float:
        """Return 1 / sum(w_i^2), or 0.0 when all weights are zero."""
        sq_sum = sum(p.weight * p.weight for p in self.particles)
        return 1.0 / sq_sum if sq_sum > 0.0 else 0.0

    def clone(self) -> ParticleDistribution[StateT]:
        return copy.deepcopy(self)


class TransitionModel(ABC, Generic[StateT, ControlT]):
    """State transition model p(x_t | x_{t-1}, u_t)."""

    @abstractmethod
    def probability(
        self, next_state: StateT, current_state: StateT, control: ControlT
    ) -> float:
        """Return the transition probability or density."""


class ObservationModel(ABC, Generic[StateT, ObservationT]):
    """Observation model p(y_t | x_t)."""

    @abstractmethod
    def probability(self, observation: ObservationT, state: StateT) -> float:
        """Return the observation likelihood."""


class ControlModel(ABC, Generic[ControlT]):
    """Optional probabilistic model over controls."""

    @abstractmethod
    def probability(self, control: ControlT) -> float:
        """Return the probability of the control."""


class BayesianFilter(ABC, Generic[StateT, ControlT, ObservationT]):
    """Recursive Bayesian filter: predict, then update."""

    @abstractmethod
    def predict(self, prior: StateDistribution, control: ControlT) -> StateDistribution:
        """Propagate the prior through the dynamics."""

    @abstractmethod
    def update(
        self, predicted: StateDistribution, observation: ObservationT
    ) -> StateDistribution:
        """Condition the predicted distribution on an observation."""

    def step(
        self, prior: StateDistribution, control: ControlT, observation: ObservationT
    ) -> StateDistribution:
        """Run predict followed by update."""
        return self.update(self.predict(prior, control), observation)


class ProposalKernel(ABC, Generic[StateT, ControlT, ObservationT]):
    """Importance proposal q(x_t | x_{t-1}, u_t, y_t)."""

    @abstractmethod
    def sample(
        self, prev_state: StateT, control: ControlT, observation: ObservationT
    ) -> StateT:
        """Draw a proposed next state."""

    @abstractmethod
    def probability(
        self,
        next_state: StateT,
        prev_state: StateT,
        control: ControlT,
        observation: ObservationT,
    ) -> float:
        """Return the proposal probability or density."""


class Resampler(ABC, Generic[StateT]):
    """Turns a weighted particle set into a new, typically equally weighted, one."""

    @abstractmethod
    def resample(self, particles: Sequence[Particle[StateT]]) -> list[Particle[StateT]]:
        """Return the resampled particles."""


class SystematicResampler(Resampler[StateT]):
    """Systematic resampling with one random offset; assumes normalized weights."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng if rng is not None else random.Random()

    def resample(self, particles: Sequence[Particle[StateT]]) -> list[Particle[StateT]]:
        n = len(particles)
        if n == 0:
            return []
        step = 1.0 / n
        offset = self._rng.random() * step

        resampled: list[Particle[StateT]] = []
        cumulative = particles[0].weight
        i = 0
        for m in range(n):
            threshold = offset + m * step
            while threshold > cumulative and i + 1 < n:
                i += 1
                cumulative += particles[i].weight
            resampled.append(Particle(particles[i].state, step))
        return resampled


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0.0:
        if numerator == 0.0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def _require_particles(dist: StateDistribution) -> ParticleDistribution[Any]:
    if not isinstance(dist, ParticleDistribution):
        raise TypeError(
            f"particle filter needs a ParticleDistribution, got {type(dist).__name__}"
        )
    return dist


class ParticleFilter(BayesianFilter[StateT, ControlT, ObservationT]):
    """Sequential Monte Carlo filter with importance weighting and ESS-triggered resampling.

    During prediction the proposal kernel is given ``None`` as the observation.
    Results keep the concrete type of the input distribution.
    """

    def __init__(
        self,
        transition_model: TransitionModel[StateT, ControlT],
        observation_model: ObservationModel[StateT, ObservationT],
        proposal_kernel: ProposalKernel[StateT, ControlT, ObservationT],
        resampler: Resampler[StateT],
        ess_threshold: float = 0.5,
    ) -> None:
        if not 0.0 < ess_threshold <= 1.0:
            raise ValueError("ess_threshold must lie in (0, 1]")
        self._transition_model = transition_model
        self._observation_model = observation_model
        self._proposal_kernel = proposal_kernel
        self._resampler = resampler
        self._ess_threshold = ess_threshold

    @property
    def ess_threshold(self) -> float:
        return self._ess_threshold

    def _propagate(self, particle: Particle[StateT], control: ControlT) -> Particle[StateT]:
        next_state = self._proposal_kernel.sample(particle.state, control, None)
        q = self._proposal_kernel.probability(next_state, particle.state, control, None)
        p_trans = self._transition_model.probability(next_state, particle.state, control)
        return Particle(next_state, particle.weight * _ratio(p_trans, q))

    def predict(
        self, prior: StateDistribution, control: ControlT
    ) -> ParticleDistribution[StateT]:
        prev = _require_particles(prior)
        predicted = copy.copy(prev)
        predicted.particles = [self._propagate(p, control) for p in prev.particles]
        predicted.normalize()
        return predicted

    def update(
        self, predicted: StateDistribution, observation: ObservationT
    ) -> ParticleDistribution[StateT]:
        updated = _require_particles(predicted).clone()
        for p in updated.particles:
            p.weight *= self._observation_model.probability(observation, p.state)
        updated.normalize()

        n = len(updated.particles)
        if updated.effective_sample_size() < self._ess_threshold * n:
            updated.particles = self._resampler.resample(updated.particles)
            if updated.particles:
                w = 1.0 / len(updated.particles)
                for p in updated.particles:
                    p.weight = w
        return updated