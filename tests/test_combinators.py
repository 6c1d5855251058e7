"""
Composition of crossovers and mutations: chains, weighted alternatives and
step-scheduled switches, plus the generic leaf operators.
"""

from __future__ import annotations

import numpy as np
import pytest

from hybridevo.exceptions import ProbabilityError, ScheduleConfigError, ScheduleExhaustedError
from hybridevo.individuals import ContinuousIndividual
from hybridevo.operators import (
    BoundedMutation,
    ChainedCrossover,
    ChainedMutation,
    GaussianCutCrossover,
    NoCrossover,
    NPointCrossover,
    Priority,
    StepScheduledCrossover,
    StepScheduledMutation,
    WeightedCrossover,
    WeightedMutation,
)
from hybridevo.operators.combinators import cumulative_buckets, select_bucket, step_offsets

from conftest import ScriptedRng, TaggingCrossover, TaggingMutation


# ---------------------------------------------------------------------------
# Weighted alternatives
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("draw, expected", [(0.25, 0), (0.9, 1)])
def test_weighted_crossover_picks_bucket_of_draw(mother, father, draw, expected):
    rng = ScriptedRng([draw])
    children = [TaggingCrossover(10.0), TaggingCrossover(20.0)]
    xover = WeightedCrossover(children, [0.3, 0.7], rng)

    c1, c2 = xover.crossover(mother, father, 5)

    assert xover.last_selected == expected
    assert children[expected].calls == 1
    assert children[1 - expected].calls == 0
    np.testing.assert_allclose(c1.genome, mother.genome + children[expected].tag)


def test_weighted_crossover_reports_priority_of_selected_child(mother, father):
    rng = ScriptedRng([0.1, 0.8])
    xover = WeightedCrossover(
        [
            TaggingCrossover(1.0, Priority.PREFER_FIRST),
            TaggingCrossover(2.0, Priority.PREFER_SECOND),
        ],
        [0.5, 0.5],
        rng,
    )
    xover.crossover(mother, father, 1)
    assert xover.priority() == Priority.PREFER_FIRST
    xover.crossover(mother, father, 2)
    assert xover.priority() == Priority.PREFER_SECOND


def test_weighted_mutation_reproduces_proportions(mother):
    rng = np.random.default_rng(1234)
    children = [TaggingMutation(1.0), TaggingMutation(2.0)]
    mut = WeightedMutation(children, [0.3, 0.7], rng)

    n = 10_000
    for _ in range(n):
        mut.mutate(mother)

    assert children[0].calls + children[1].calls == n
    assert abs(children[0].calls / n - 0.3) < 0.03


def test_probabilities_must_add_up_to_one():
    rng = ScriptedRng()
    with pytest.raises(ProbabilityError):
        WeightedCrossover([NoCrossover(), NoCrossover()], [0.3, 0.6], rng)
    with pytest.raises(ProbabilityError):
        WeightedCrossover([NoCrossover()], [0.5, 0.5], rng)
    # within the default tolerance
    WeightedCrossover([NoCrossover(), NoCrossover()], [0.3, 0.7005], rng)


def test_bucket_tolerance_is_configurable():
    with pytest.raises(ProbabilityError):
        cumulative_buckets([0.5, 0.49], 2)
    buckets = cumulative_buckets([0.5, 0.49], 2, tolerance=0.02)
    assert select_bucket(buckets, 0.995) == 1


# ---------------------------------------------------------------------------
# Chains
# ---------------------------------------------------------------------------


def test_chain_with_second_stage_disabled_equals_first_crossover(mother, father):
    first, second = TaggingCrossover(1.0), TaggingCrossover(100.0)
    chain = ChainedCrossover([first, second], [1.0, 0.0], ScriptedRng([0.5, 0.5]))

    c1, c2 = chain.crossover(mother, father, 3)
    d1, d2 = TaggingCrossover(1.0).crossover(mother, father, 3)

    np.testing.assert_allclose(c1.genome, d1.genome)
    np.testing.assert_allclose(c2.genome, d2.genome)
    assert second.calls == 0


def test_chain_without_any_stage_returns_copies(mother, father):
    chain = ChainedCrossover(
        [TaggingCrossover(1.0), TaggingCrossover(2.0)], [0.0, 0.0], ScriptedRng([0.0, 0.0])
    )
    c1, c2 = chain.crossover(mother, father, 3)

    assert c1 is not mother and c2 is not father
    np.testing.assert_allclose(c1.genome, mother.genome)
    np.testing.assert_allclose(c2.genome, father.genome)

    mchain = ChainedMutation([TaggingMutation(1.0)], [0.0], ScriptedRng([0.3]))
    m = mchain.mutate(mother)
    assert m is not mother
    np.testing.assert_allclose(m.genome, mother.genome)


def test_chained_mutation_applies_stages_in_order(mother):
    rng = ScriptedRng([0.1, 0.9, 0.1])
    chain = ChainedMutation(
        [TaggingMutation(1.0), TaggingMutation(10.0), TaggingMutation(100.0)],
        [0.5, 0.5, 0.5],
        rng,
    )
    m = chain.mutate(mother)
    np.testing.assert_allclose(m.genome, mother.genome + 101.0)
    assert rng.calls == 3


def test_chain_copy_reseats_shared_rng(mother, father):
    rng = np.random.default_rng(1)
    chain = ChainedCrossover([NPointCrossover(rng, 1)], [1.0], rng)

    other = np.random.default_rng(2)
    clone = chain.copy(rng=other)

    assert clone.rng is other
    assert clone.children[0].rng is other
    assert chain.rng is rng


# ---------------------------------------------------------------------------
# Scheduled switches
# ---------------------------------------------------------------------------


def test_step_offsets_are_cumulative_section_ends():
    assert step_offsets(100, [0.3, 0.7], 2).tolist() == [30, 100]
    assert step_offsets(10, [0.25, 0.75], 2).tolist() == [3, 11]


@pytest.mark.parametrize(
    "step, expected",
    [(0, 0), (29, 0), (30, 1), (99, 1), (100, 1), (109, 1)],
)
def test_scheduled_crossover_selects_by_step(mother, father, step, expected):
    children = [TaggingCrossover(1.0), TaggingCrossover(2.0)]
    xover = StepScheduledCrossover(100, children, [0.3, 0.7])

    xover.crossover(mother, father, step)

    assert xover.last_selected == expected


def test_scheduled_switch_beyond_budget_raises(mother, father):
    xover = StepScheduledCrossover(100, [NoCrossover(), NoCrossover()], [0.3, 0.7])
    with pytest.raises(ScheduleExhaustedError, match="more steps than initially anticipated"):
        xover.crossover(mother, father, 500)


def test_scheduled_mutation_uses_individual_id():
    children = [TaggingMutation(1.0), TaggingMutation(2.0)]
    mut = StepScheduledMutation(50, children, [0.5, 0.5])

    early = ContinuousIndividual(id=3, genome=[0.0])
    late = ContinuousIndividual(id=40, genome=[0.0])
    assert mut.mutate(early).genome[0] == 1.0
    assert mut.mutate(late).genome[0] == 2.0


def test_scheduled_switch_validates_percentages():
    with pytest.raises(ScheduleConfigError):
        StepScheduledCrossover(100, [NoCrossover(), NoCrossover()], [0.3, 0.5])
    with pytest.raises(ScheduleConfigError):
        StepScheduledCrossover(100, [NoCrossover()], [0.3, 0.7])
    # slightly too much is within the step tolerance
    StepScheduledCrossover(100, [NoCrossover(), NoCrossover()], [0.5, 0.55])


# ---------------------------------------------------------------------------
# Leaf operators
# ---------------------------------------------------------------------------


def test_npoint_crossover_children_are_complementary(mother, father):
    xover = NPointCrossover(np.random.default_rng(7), number_of_cuts=2)
    for _ in range(20):
        c1, c2 = xover.crossover(mother, father, 9)
        np.testing.assert_allclose(c1.genome + c2.genome, mother.genome + father.genome)
        assert set(c1.genome.tolist()) <= {0.0, 1.0}
    assert mother.genome.tolist() == [0.0] * 4


def test_npoint_crossover_with_too_many_cuts_fails(mother, father):
    xover = NPointCrossover(np.random.default_rng(7), number_of_cuts=4)
    assert xover.crossover(mother, father, 9) == (None, None)


def test_gaussian_cut_crossover_swaps_tail(mother, father):
    xover = GaussianCutCrossover(np.random.default_rng(3), gauss_width=0.3)
    c1, c2 = xover.crossover(mother, father, 1)
    genes = c1.genome.tolist()
    # a prefix from the mother followed by a suffix from the father
    assert genes == sorted(genes)
    np.testing.assert_allclose(c1.genome + c2.genome, np.ones(4))


def test_bounded_mutation_single_changes_one_gene(mother):
    mut = BoundedMutation(np.random.default_rng(5), [5.0] * 4, [6.0] * 4, mode="single")
    mutant = mut.mutate(mother)
    changed = mutant.genome != 0.0
    assert changed.sum() == 1
    assert np.all((mutant.genome[changed] >= 5.0) & (mutant.genome[changed] <= 6.0))
    assert np.all(mother.genome == 0.0)


def test_bounded_mutation_multi_stays_in_bounds(mother):
    mut = BoundedMutation(np.random.default_rng(5), [5.0] * 4, [6.0] * 4, mode="multi")
    for _ in range(20):
        mutant = mut.mutate(mother)
        changed = mutant.genome[mutant.genome != 0.0]
        assert np.all((changed >= 5.0) & (changed <= 6.0))
