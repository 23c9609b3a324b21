# pomdpkit

Small, composable building blocks for partially observable Markov
decision processes (POMDPs) in pure Python. There are no runtime
dependencies outside the standard library.

The package keeps three concerns apart:

- **Belief representation** (`pomdpkit.beliefs`): `ParticleBelief`,
  `DiscreteBelief`, `GaussianBelief`, `GaussianMixtureBelief` (with
  `GaussianComponent`), `SetBelief`, `LatentBelief` and `HybridBelief`.
- **Belief update** (`pomdpkit.filtering`): `ParticleDistribution`,
  `ParticleFilter`, `ProposalKernel`, `Resampler` and
  `SystematicResampler`, plus the abstract `BayesianFilter`,
  `TransitionModel`, `ObservationModel` and `ControlModel`. The
  `pomdpkit.adapters` module connects POMDP kernels to this layer.
- **Planning** (`pomdpkit.planning`): `Simulator`, `SimulationResult`,
  `ActionSampler`, `BeliefSampler`, `Planner`, `PlannerRunner` and
  `RandomShootingPlanner`; and (`pomdpkit.mcst_tree`,
  `pomdpkit.mcst_planners`) search-tree nodes, selection strategies,
  rollouts, `MCSTPlanner` and `PomcpPlanner`.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Core concepts (`pomdpkit.core`)

`Action` and `Observation` are frozen, hashable dataclasses identified
by an integer `id` (default `0`). What an id means is up to the model;
the continuous example keeps a table from action ids to control vectors.

A model implements `POMDPModel`, whose `transition()` returns a
`TransitionKernel` (`transition_log_prob(next_state, prev_state, action)`)
and whose `observation()` returns an `ObservationKernel`
(`observation_log_prob(observation, state)`). `Policy.decide` and
`BeliefUpdater.update` are the abstract decision and update interfaces.

`SequenceHistory` records `HistoryEntry(action, observation)` pairs;
`entries()` returns them oldest first, and the history supports `len()`
and iteration.

## Particle filtering

`ParticleDistribution.normalize()` scales weights to sum to one (and
does nothing if the sum is not positive); `effective_sample_size()`
returns `1 / sum(w_i^2)`, or `0.0` when every weight is zero.

`ParticleFilter(transition_model, observation_model, proposal_kernel,
resampler, ess_threshold=0.5)` raises `ValueError` unless
`0 < ess_threshold <= 1`. `predict` moves each particle with the
proposal kernel (passing `None` as the observation) and reweights it by
`p_transition / q`; `update` multiplies weights by the observation
likelihood, normalizes, and resamples to equal weights when the
effective sample size drops below `ess_threshold * N`. `step` runs both.
Non-particle distributions are rejected with `TypeError`. Results keep
the concrete type of the input, so a `ParticleBelief` stays a
`ParticleBelief`.

`SystematicResampler(rng=None)` takes an optional `random.Random` for
reproducible results.

The adapters `TransitionModelAdapter` and `ObservationModelAdapter` turn
log-probability kernels into probability models by exponentiation;
`ProposalKernelAdapter` samples through a proposal and scores with a
transition model. `BayesianFilterAdapter` is an abstract base that runs
a filter on beliefs through `belief_to_distribution` and
`distribution_to_belief`.

## Search

```python
from pomdpkit.core import Action
from pomdpkit.mcst_tree import Node, UCBSelection

node = Node()
for action_id, value in [(1, 0.2), (2, 0.9), (1, 0.4)]:
    entry = node.ensure_action(Action(action_id))
    entry.stats.update(value)
    node.update(value)

best = UCBSelection(1.4).select_existing(node)
```

`UCBSelection` scores visited actions by
`mean + c * sqrt(ln(N + 1) / n)`. `ProgressiveWidening(action_sampler,
k=1.0, alpha=0.5)` proposes a new action while the node has fewer than
`k * (N + 1) ** alpha` actions and never selects existing ones.
`CompositeSelection` asks each strategy in order for an expansion, then
falls back to the first strategy able to select an existing action, and
raises `SelectionError` if none can. `PomcpNode` adds observation-indexed
children (`ensure_child`, `get_child`).

`RandomRollout(sample_action)` simulates a fixed horizon, drawing each
action after the first from the given callable. `MCSTPlanner` and
`PomcpPlanner` perform one simulation per `decide` call and accumulate
statistics; `best_action()` returns the visited root action with the
highest mean value. `PlannerRunner` drives any `Planner` with
`run_iterations`, `run_for_duration` (seconds or a `timedelta`) or a
single `step`.

## Example programs

Three examples are installed as commands.

```
pomdpkit-simple [OBSERVATIONS ...]
```

An integer belief that adds each observation to its value, with a
policy choosing `1` for a positive belief and `-1` otherwise. The
default observations are `1 -2 3`.

```
pomdpkit-offline [--large] [--seed SEED]
```

Offline particle filtering over a ten-state discrete model with a fixed
action/observation sequence, printing the effective sample size after
each step. `--large` runs 5000 particles over 1000 states for 50 steps.

```
pomdpkit-online [--steps N] [--particles N] [--seed SEED]
```

Online planning for a 2-D point mass: a particle filter tracks position
and velocity from grid-cell observations while an `MCSTPlanner` with
progressive widening, UCB selection and random rollouts picks
accelerations, planning for 10 ms per step.

## What it does not do

- The Gaussian, mixture, set, latent, discrete and hybrid beliefs are
  plain data holders; only particle beliefs have an updater.
- `PomcpPlanner` records observation children at the root but does not
  descend into them; each simulation is one step plus a rollout. No tree
  is reused or pruned between decisions.
- The example models are self-contained simulations; nothing connects
  to a real environment.