"""Concrete belief representations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Sequence, TypeVar

from pomdpkit.core import Belief
from pomdpkit.filtering import ParticleDistribution

StateT = TypeVar("StateT")
GlobalT = TypeVar("GlobalT")
LocalT = TypeVar("LocalT")

Matrix = Sequence[Sequence[float]]


@dataclass
class DiscreteBelief(Belief, Generic[StateT]):
    """Belief over a finite state space: states[i] has probability probs[i]."""

    states: list[StateT] = field(default_factory=list)
    probs: list[float] = field(default_factory=list)


@dataclass
class GaussianBelief(Belief, Generic[StateT]):
    """Single Gaussian belief N(mean, covariance)."""

    mean: Any = None
    covariance: Matrix = field(default_factory=list)


@dataclass
class GaussianComponent(Generic[StateT]):
    """One weighted component of a Gaussian mixture."""

    mean: StateT
    covariance: Matrix
    weight: float


@dataclass
class GaussianMixtureBelief(Belief, Generic[StateT]):
    """Gaussian mixture belief: sum_k w_k N(mean_k, cov_k)."""

    components: list[GaussianComponent[StateT]] = field(default_factory=list)


@dataclass
class HybridBelief(Belief, Generic[GlobalT, LocalT]):
    """Coarse global belief combined with a detailed local one."""

    global_belief: Any = None
    local_belief: Any = None


@dataclass
class LatentBelief(Belief):
    """Belief summarised by a learned embedding vector z."""

    z: list[float] = field(default_factory=list)


@dataclass
class SetBelief(Belief, Generic[StateT]):
    """Feasibility-only belief: the state lies between two bounds."""

    lower_bound: Any = None
    upper_bound: Any = None


class ParticleBelief(ParticleDistribution[StateT], Belief):
    """Particle distribution used as a POMDP belief."""