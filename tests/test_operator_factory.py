"""
Operator strings: tokenizer levels, list parsing and the operator factory.
"""

from __future__ import annotations

import numpy as np
import pytest

from hybridevo.exceptions import OperatorConfigError, ProbabilityError
from hybridevo.operators import (
    BoundedMutation,
    ChainedCrossover,
    ChainedMutation,
    GaussianCutCrossover,
    MutationAsCrossover,
    NoCrossover,
    NoMutation,
    NPointCrossover,
    OperatorFactory,
    OperatorFactoryConfig,
    StepScheduledCrossover,
    StepScheduledMutation,
    WeightedCrossover,
    WeightedMutation,
)
from hybridevo.operators import grammar

from conftest import TaggingCrossover


@pytest.fixture
def factory():
    return OperatorFactory(np.random.default_rng(0), OperatorFactoryConfig(total_steps=100))


def test_split_level_respects_brackets():
    text = "40%[chained:100%a|50%b]|60%c"
    assert grammar.tokenize_first_level(text) == ["40%[chained:100%a|50%b]", "60%c"]
    assert grammar.tokenize_second_level("a=1;b=2") == ["a=1", "b=2"]
    assert grammar.tokenize_third_level("mode=multi,lower=0/1") == ["mode=multi", "lower=0/1"]
    assert grammar.tokenize_fourth_level("0/1.5/-2") == ["0", "1.5", "-2"]
    assert grammar.tokenize_first_level("  ") == []


def test_split_level_rejects_unbalanced_brackets():
    with pytest.raises(OperatorConfigError):
        grammar.tokenize_first_level("[a|b")
    with pytest.raises(OperatorConfigError):
        grammar.tokenize_first_level("a]|b")


def test_unwrap_only_strips_enclosing_pair():
    assert grammar.unwrap("[noxover]") == "noxover"
    assert grammar.unwrap(" [[a]] ") == "[a]"
    assert grammar.unwrap("[a]|[b]") == "[a]|[b]"


def test_parse_weighted_and_scheduled_lists():
    assert grammar.parse_weighted_list("30%a|70%[b|c]", "crossover") == [(0.3, "a"), (0.7, "b|c")]
    assert grammar.parse_scheduled_list("30%[a]70%[b[x]]", "mutation") == [
        (0.3, "a"),
        (0.7, "b[x]"),
    ]
    with pytest.raises(OperatorConfigError, match="missing percentage"):
        grammar.parse_weighted_list("noxover", "crossover")
    with pytest.raises(OperatorConfigError):
        grammar.parse_scheduled_list("30%a", "mutation")


def test_value_tokens():
    assert grammar.int_token("nocuts=", "nocuts=3", "x") == 3
    assert grammar.bool_token("flag=", "flag=Yes", "x") is True
    assert grammar.float_list_token("lower=", "lower=-1/2.5", "x") == [-1.0, 2.5]
    with pytest.raises(OperatorConfigError, match="nocuts=three"):
        grammar.int_token("nocuts=", "nocuts=three", "crossover (portugal)")


def test_generic_crossovers(factory):
    assert isinstance(factory.get_crossover("noxover"), NoCrossover)
    assert isinstance(factory.get_crossover("NoCrossover:"), NoCrossover)

    portugal = factory.get_crossover("portugal:nocuts=3")
    assert isinstance(portugal, NPointCrossover)
    assert portugal.number_of_cuts == 3

    germany = factory.get_crossover("germany:gausswidth=0.2")
    assert isinstance(germany, GaussianCutCrossover)
    assert germany.gauss_width == pytest.approx(0.2)

    mac = factory.get_crossover("mutationasxover:nomutation")
    assert isinstance(mac, MutationAsCrossover)
    assert isinstance(mac.mutation, NoMutation)


def test_nested_crossover_tree(factory):
    xover = factory.get_crossover(
        "multiple:40%[chained:100%portugal:nocuts=2|50%noxover]|60%germany:gausswidth=0.3"
    )
    assert isinstance(xover, WeightedCrossover)
    chain, germany = xover.children
    assert isinstance(chain, ChainedCrossover)
    assert chain.probabilities == [1.0, 0.5]
    assert isinstance(chain.children[0], NPointCrossover)
    assert isinstance(germany, GaussianCutCrossover)
    # one shared generator in the whole tree
    assert chain.rng is factory.rng and chain.children[0].rng is factory.rng


def test_scheduled_forms(factory):
    xover = factory.get_crossover("changingxover:30%[noxover]70%[portugal:nocuts=1]")
    assert isinstance(xover, StepScheduledCrossover)
    assert xover.offsets.tolist() == [30, 100]

    mut = factory.get_mutation("changingmut:50%[nomutation]50%[nomutation]")
    assert isinstance(mut, StepScheduledMutation)


def test_generic_mutations(factory):
    assert isinstance(factory.get_mutation("nomutation"), NoMutation)

    bounded = factory.get_mutation("bounded:mode=multi,lower=0/0,upper=1/2")
    assert isinstance(bounded, BoundedMutation)
    assert bounded.mode == "multi"
    assert bounded.upper.tolist() == [1.0, 2.0]

    weighted = factory.get_mutation("multiple:50%nomutation|50%[bounded:lower=0,upper=1]")
    assert isinstance(weighted, WeightedMutation)

    chained = factory.get_mutation("chained:100%nomutation|20%nomutation")
    assert isinstance(chained, ChainedMutation)


@pytest.mark.parametrize(
    "spec",
    [
        "nosuchxover",
        "portugal:nocuts=-1",
        "portugal:cuts=1",
        "germany:gausswidth=0",
        "multiple:abc%noxover",
        "multiple:",
    ],
)
def test_malformed_crossovers(factory, spec):
    with pytest.raises(OperatorConfigError):
        factory.get_crossover(spec)


@pytest.mark.parametrize(
    "spec",
    [
        "nosuchmutation",
        "bounded:lower=0/0",
        "bounded:mode=some,lower=0,upper=1",
        "bounded:lower=1,upper=0",
    ],
)
def test_malformed_mutations(factory, spec):
    with pytest.raises(OperatorConfigError):
        factory.get_mutation(spec)


def test_unknown_token_is_named_in_error(factory):
    with pytest.raises(OperatorConfigError) as info:
        factory.get_crossover("multiple:50%noxover|50%frobnicate")
    assert "frobnicate" in str(info.value)
    assert info.value.family == "crossover"


def test_probability_sum_checked(factory):
    with pytest.raises(ProbabilityError):
        factory.get_crossover("multiple:50%noxover|40%noxover")


class TaggingFactory(OperatorFactory):
    def specialized_crossover(self, spec):
        if spec.startswith("tag:"):
            return TaggingCrossover(float(spec[4:]))
        if spec == "noxover":
            return TaggingCrossover(0.0)
        return None


def test_specialized_hook_is_consulted_first():
    factory = TaggingFactory(np.random.default_rng(0), OperatorFactoryConfig(total_steps=10))

    assert isinstance(factory.get_crossover("noxover"), TaggingCrossover)
    assert isinstance(factory.get_crossover("nocrossover"), NoCrossover)

    weighted = factory.get_crossover("multiple:50%tag:1.5|50%portugal:nocuts=1")
    assert weighted.children[0].tag == 1.5
    assert isinstance(weighted.children[1], NPointCrossover)
