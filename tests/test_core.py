import math

import pytest

from pomdpkit.core import (
    Action,
    Belief,
    BeliefUpdater,
    History,
    HistoryEntry,
    Observation,
    ObservationKernel,
    POMDPModel,
    Policy,
    SequenceHistory,
    TransitionKernel,
)


class _ModuloModel(POMDPModel, TransitionKernel, ObservationKernel):
    def transition(self):
        return self

    def observation(self):
        return self

    def transition_log_prob(self, next_state, prev_state, action):
        return 0.0 if next_state == (prev_state + action.id) % 10 else -math.log(10.0)

    def observation_log_prob(self, observation, state):
        return 0.0 if observation.id == state else -math.log(10.0)


class _CounterBelief(Belief):
    def __init__(self, value):
        self.value = value


class _AddUpdater(BeliefUpdater):
    def update(self, prev, last_action, observation, history):
        return _CounterBelief(prev.value + observation.id)


class _SignPolicy(Policy):
    def decide(self, belief, history):
        return Action(1 if belief.value > 0 else -1)


def test_action_default_id_is_zero():
    assert Action().id == 0
    assert Action() == Action(0)


def test_action_equality_and_hashing():
    assert Action(3) == Action(3)
    assert Action(3) != Action(4)
    table = {Action(3): "x"}
    assert table[Action(3)] == "x"
    assert len({Action(1), Action(1), Action(2)}) == 2


def test_observation_equality_and_hashing():
    assert Observation(7) == Observation(7)
    assert Observation() == Observation(0)
    assert len({Observation(5), Observation(5)}) == 1


def test_action_is_immutable():
    a = Action(1)
    with pytest.raises(AttributeError):
        a.id = 2
    assert a.id == 1
    assert a == Action(1)


def test_sequence_history_keeps_order():
    history = SequenceHistory()
    history.append(Action(1), Observation(10))
    history.append(Action(2), Observation(20))
    assert history.entries() == (
        HistoryEntry(Action(1), Observation(10)),
        HistoryEntry(Action(2), Observation(20)),
    )
    assert len(history) == 2
    assert [e.action.id for e in history] == [1, 2]


def test_sequence_history_entries_is_snapshot():
    history = SequenceHistory()
    history.append(Action(1), Observation(1))
    snapshot = history.entries()
    history.append(Action(2), Observation(2))
    assert len(snapshot) == 1
    assert len(history.entries()) == 2


def test_sequence_history_is_history():
    history = SequenceHistory()
    assert isinstance(history, History)
    assert history.entries() == ()


@pytest.mark.parametrize(
    "cls", [Policy, BeliefUpdater, TransitionKernel, ObservationKernel, POMDPModel]
)
def test_interfaces_are_abstract(cls):
    with pytest.raises(TypeError):
        cls()


def test_model_kernels():
    model = _ModuloModel()
    assert model.transition() is model
    assert model.observation() is model
    assert model.transition().transition_log_prob(3, 1, Action(2)) == 0.0
    assert model.transition().transition_log_prob(4, 1, Action(2)) == pytest.approx(
        -math.log(10.0)
    )
    assert model.observation().observation_log_prob(Observation(5), 5) == 0.0


def test_updater_and_policy_loop():
    updater = _AddUpdater()
    policy = _SignPolicy()
    history = History()
    belief = _CounterBelief(0)
    chosen = []
    for o in (1, -2, 3):
        belief = updater.update(belief, Action(0), Observation(o), history)
        chosen.append(policy.decide(belief, history).id)
    assert belief.value == 2
    assert chosen == [1, -1, 1]