import itertools

import pytest

from pomdpkit.core import Action, Belief, History, Observation
from pomdpkit.mcst_planners import MCSTPlanner, PomcpPlanner, RandomRollout, RolloutPolicy
from pomdpkit.mcst_tree import (
    CompositeSelection,
    ProgressiveWidening,
    SelectionError,
    SelectionStrategy,
    UCBSelection,
)
from pomdpkit.planning import (
    ActionSampler,
    BeliefSampler,
    PlannerRunner,
    SimulationResult,
    Simulator,
)


class LineSimulator(Simulator[int]):
    """Moves along the integers by the action id; reward equals the action id."""

    def __init__(self):
        self.calls = []

    def step(self, state, action):
        self.calls.append((state, action))
        nxt = state + action.id
        return SimulationResult(nxt, Observation(nxt), float(action.id))


class CyclingSampler(ActionSampler):
    def __init__(self, ids):
        self._ids = itertools.cycle(ids)
        self.beliefs = []

    def sample_action(self, belief):
        self.beliefs.append(belief)
        return Action(next(self._ids))


class FixedBeliefSampler(BeliefSampler[int]):
    def __init__(self, state=0):
        self.state = state
        self.beliefs = []

    def sample_state(self, belief):
        self.beliefs.append(belief)
        return self.state


class RecordingRollout(RolloutPolicy[int]):
    def __init__(self, value_fn=lambda state, action: 0.0):
        self.value_fn = value_fn
        self.calls = []

    def rollout(self, state, first_action, simulator, horizon, discount):
        self.calls.append((state, first_action, horizon, discount))
        return self.value_fn(state, first_action)


class FirstExisting(SelectionStrategy):
    """Never expands; selects the first existing action."""

    def select_existing(self, node):
        if not node.actions:
            raise SelectionError("empty")
        return next(iter(node.actions))


def widening_then_ucb(sampler, k=3.0):
    return CompositeSelection([ProgressiveWidening(sampler, k=k, alpha=0.0), UCBSelection()])


# ---------------------------------------------------------------- RandomRollout


def test_random_rollout_zero_horizon_is_zero():
    sim = LineSimulator()
    rollout = RandomRollout(lambda: Action(1))
    assert rollout.rollout(0, Action(5), sim, 0, 0.9) == 0.0
    assert sim.calls == []


def test_random_rollout_undiscounted_sum_equals_horizon_for_unit_rewards():
    sim = LineSimulator()
    rollout = RandomRollout(lambda: Action(1))
    assert rollout.rollout(0, Action(1), sim, 6, 1.0) == pytest.approx(6.0)


def test_random_rollout_zero_discount_keeps_only_first_reward():
    sim = LineSimulator()
    rollout = RandomRollout(lambda: Action(2))
    assert rollout.rollout(0, Action(5), sim, 4, 0.0) == pytest.approx(5.0)


def test_random_rollout_uses_first_action_then_sampled_and_chains_states():
    ids = itertools.count(10)
    sim = LineSimulator()
    rollout = RandomRollout(lambda: Action(next(ids)))
    rollout.rollout(3, Action(1), sim, 3, 1.0)
    assert [a for _, a in sim.calls] == [Action(1), Action(10), Action(11)]
    assert [s for s, _ in sim.calls] == [3, 4, 14]


# ---------------------------------------------------------------- MCSTPlanner


def test_mcst_best_action_before_any_simulation_is_default():
    sampler = CyclingSampler([1])
    planner = MCSTPlanner(
        FixedBeliefSampler(), sampler, LineSimulator(), UCBSelection(), RecordingRollout(), 3
    )
    assert planner.best_action() == Action()


def test_mcst_converges_to_highest_reward_action():
    sampler = CyclingSampler([1, 2, 3])
    sim = LineSimulator()
    planner = MCSTPlanner(
        FixedBeliefSampler(),
        sampler,
        sim,
        widening_then_ucb(sampler),
        RandomRollout(lambda: Action(0)),
        horizon=1,
    )
    runner = PlannerRunner(planner)
    best = runner.run_iterations(Belief(), History(), 30)
    assert best == Action(3)
    assert planner.best_action() == Action(3)
    assert {a for _, a in sim.calls} == {Action(1), Action(2), Action(3)}


def test_mcst_passes_sampled_state_horizon_and_discount_to_rollout():
    belief = Belief()
    belief_sampler = FixedBeliefSampler(state=7)
    rollout = RecordingRollout()
    sampler = CyclingSampler([4])
    planner = MCSTPlanner(
        belief_sampler, sampler, LineSimulator(), widening_then_ucb(sampler), rollout, 5, 0.9
    )
    assert planner.decide(belief, History()) == Action(4)
    assert rollout.calls == [(7, Action(4), 5, 0.9)]
    assert belief_sampler.beliefs == [belief]


def test_mcst_falls_back_to_sampling_with_the_given_belief():
    belief = Belief()
    sampler = CyclingSampler([8, 9])
    planner = MCSTPlanner(
        FixedBeliefSampler(), sampler, LineSimulator(), FirstExisting(), RecordingRollout(), 2
    )
    assert planner.decide(belief, History()) == Action(8)
    assert sampler.beliefs == [belief]
    # Later calls select among existing actions instead of sampling again.
    assert planner.decide(belief, History()) == Action(8)
    assert len(sampler.beliefs) == 1


def test_mcst_composite_error_propagates_when_nothing_can_select():
    sampler = CyclingSampler([1])
    selection = CompositeSelection([ProgressiveWidening(sampler, k=1.0, alpha=0.0)])
    planner = MCSTPlanner(
        FixedBeliefSampler(), sampler, LineSimulator(), selection, RecordingRollout(), 1
    )
    planner.decide(Belief(), History())
    with pytest.raises(SelectionError):
        planner.decide(Belief(), History())


# ---------------------------------------------------------------- PomcpPlanner


def test_pomcp_zero_horizon_does_nothing():
    sampler = CyclingSampler([1])
    sim = LineSimulator()
    planner = PomcpPlanner(
        FixedBeliefSampler(), sampler, sim, widening_then_ucb(sampler), RecordingRollout(), 0
    )
    assert planner.decide(Belief(), History()) == Action()
    assert sampler.beliefs == []
    assert sim.calls == []


def test_pomcp_rolls_out_from_next_state_with_reduced_horizon():
    sampler = CyclingSampler([4])
    sim = LineSimulator()
    rollout = RecordingRollout()
    planner = PomcpPlanner(
        FixedBeliefSampler(state=7), sampler, sim, widening_then_ucb(sampler), rollout, 5, 0.9
    )
    assert planner.decide(Belief(), History()) == Action(4)
    assert sim.calls == [(7, Action(4))]
    assert rollout.calls == [(11, Action(4), 4, 0.9)]


@pytest.mark.parametrize("discount, expected", [(0.0, Action(3)), (1.0, Action(1))])
def test_pomcp_discount_weights_future_return(discount, expected):
    sampler = CyclingSampler([1, 2, 3])
    rollout = RecordingRollout(lambda state, action: -10.0 * state)
    planner = PomcpPlanner(
        FixedBeliefSampler(state=0),
        sampler,
        LineSimulator(),
        widening_then_ucb(sampler),
        rollout,
        horizon=2,
        discount=discount,
    )
    for _ in range(30):
        planner.decide(Belief(), History())
    assert planner.best_action() == expected


def test_pomcp_fallback_samples_without_the_callers_belief():
    belief = Belief()
    sampler = CyclingSampler([6])
    planner = PomcpPlanner(
        FixedBeliefSampler(), sampler, LineSimulator(), FirstExisting(), RecordingRollout(), 1
    )
    assert planner.decide(belief, History()) == Action(6)
    assert len(sampler.beliefs) == 1
    assert sampler.beliefs[0] is not belief
    assert isinstance(sampler.beliefs[0], Belief)