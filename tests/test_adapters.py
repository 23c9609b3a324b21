import math
import random

import pytest

from pomdpkit.adapters import (
    BayesianFilterAdapter,
    ObservationModelAdapter,
    ProposalKernelAdapter,
    TransitionModelAdapter,
)
from pomdpkit.beliefs import ParticleBelief
from pomdpkit.core import Action, Observation, ObservationKernel, TransitionKernel
from pomdpkit.filtering import (
    Particle,
    ParticleDistribution,
    ParticleFilter,
    ProposalKernel,
    SystematicResampler,
    TransitionModel,
)


class ConstantTransitionKernel(TransitionKernel):
    def __init__(self, log_p):
        self.log_p = log_p
        self.calls = []

    def transition_log_prob(self, next_state, prev_state, action):
        self.calls.append((next_state, prev_state, action))
        return self.log_p


class MatchObservationKernel(ObservationKernel):
    def observation_log_prob(self, observation, state):
        return 0.0 if observation.id == state else -math.inf


class IdentityProposal(ProposalKernel):
    def sample(self, prev_state, control, observation):
        return prev_state

    def probability(self, next_state, prev_state, control, observation):
        return 1.0


class FixedTransition(TransitionModel):
    def probability(self, next_state, current_state, control):
        return 0.125


class ParticleBeliefAdapter(BayesianFilterAdapter):
    def belief_to_distribution(self, belief):
        return ParticleDistribution([Particle(p.state, p.weight) for p in belief.particles])

    def distribution_to_belief(self, distribution):
        return ParticleBelief([Particle(p.state, p.weight) for p in distribution.particles])


def test_transition_adapter_exponentiates_log_prob():
    kernel = ConstantTransitionKernel(math.log(0.25))
    adapter = TransitionModelAdapter(kernel)
    assert adapter.probability(2, 1, Action(3)) == pytest.approx(0.25)
    assert kernel.calls == [(2, 1, Action(3))]


def test_transition_adapter_negative_infinity_gives_zero():
    adapter = TransitionModelAdapter(ConstantTransitionKernel(-math.inf))
    assert adapter.probability(0, 0, Action()) == 0.0


def test_transition_adapter_huge_log_prob_gives_infinity():
    adapter = TransitionModelAdapter(ConstantTransitionKernel(1e6))
    assert adapter.probability(0, 0, Action()) == math.inf


def test_observation_adapter():
    adapter = ObservationModelAdapter(MatchObservationKernel())
    assert adapter.probability(Observation(4), 4) == 1.0
    assert adapter.probability(Observation(4), 5) == 0.0


def test_proposal_adapter_delegates():
    adapter = ProposalKernelAdapter(IdentityProposal(), FixedTransition())
    assert adapter.sample(9, Action(1), Observation(2)) == 9
    assert adapter.probability(3, 9, Action(1), Observation(2)) == FixedTransition().probability(
        3, 9, Action(1)
    )


def test_bayesian_filter_adapter_is_abstract():
    with pytest.raises(TypeError):
        BayesianFilterAdapter(None)


def test_bayesian_filter_adapter_without_resampling_keeps_weights():
    transition = TransitionModelAdapter(ConstantTransitionKernel(0.0))
    observation = ObservationModelAdapter(ConstantObservation())
    proposal = ProposalKernelAdapter(IdentityProposal(), transition)
    pf = ParticleFilter(transition, observation, proposal, SystematicResampler(random.Random(1)))
    adapter = ParticleBeliefAdapter(pf)

    prior = ParticleBelief([Particle(0, 0.5), Particle(1, 0.5)])
    posterior = adapter.update(prior, Action(0), Observation(0))
    assert [p.state for p in posterior.particles] == [0, 1]
    assert [p.weight for p in posterior.particles] == pytest.approx([0.5, 0.5])


class ConstantObservation(ObservationKernel):
    def observation_log_prob(self, observation, state):
        return 0.0