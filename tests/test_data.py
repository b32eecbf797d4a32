"""Tests for rating entities, match outcomes and rating periods."""

import dataclasses

import pandas as pd
import polars as pl
import pytest

from glicko2_periods import (
    InvalidOutcomeError,
    MatchOutcome,
    RatingEntity,
    RatingPeriod,
)


# =============================================================================
# RatingEntity
# =============================================================================

def test_entity_defaults():
    entity = RatingEntity()
    assert entity.state == (1500.0, 350.0, 0.06)
    assert entity.working_rating is None
    assert entity.working_deviation is None
    assert entity.working_volatility is None
    assert not entity.is_staged


def test_entity_identity_survives_mutation():
    a, b = RatingEntity(), RatingEntity()
    assert a != b
    assert b.id > a.id

    members = {a}
    a.stage(1700.0, 120.0, 0.05)
    a.commit()

    assert a in members
    assert b not in members
    assert a == a


def test_entities_with_equal_values_are_distinct():
    a = RatingEntity(1500.0, 200.0, 0.06)
    b = RatingEntity(1500.0, 200.0, 0.06)
    assert a != b
    assert len({a, b}) == 2


def test_stage_then_commit():
    entity = RatingEntity(1500.0, 200.0, 0.06)

    entity.stage(1464.05, 151.52, 0.05999)
    assert entity.state == (1500.0, 200.0, 0.06)
    assert entity.is_staged

    entity.commit()
    assert entity.state == (1464.05, 151.52, 0.05999)
    assert not entity.is_staged
    assert entity.working_rating is None


def test_commit_without_stage():
    entity = RatingEntity()
    with pytest.raises(RuntimeError):
        entity.commit()


# =============================================================================
# MatchOutcome
# =============================================================================

def test_outcome_accessors():
    a, b = RatingEntity(), RatingEntity()
    outcome = MatchOutcome(a, b, 1.0, 0.0)

    assert outcome.participants == (a, b)
    assert outcome.score_for(a) == 1.0
    assert outcome.score_for(b) == 0.0
    assert outcome.opponent_of(a) is b
    assert outcome.opponent_of(b) is a
    assert outcome.winner is a
    assert dict(outcome.scores) == {a: 1.0, b: 0.0}
    assert a in outcome and b in outcome


def test_outcome_rejects_foreign_entity_lookup():
    a, b, c = RatingEntity(), RatingEntity(), RatingEntity()
    outcome = MatchOutcome(a, b, 1.0, 0.0)

    assert not outcome.involves(c)
    with pytest.raises(KeyError):
        outcome.score_for(c)
    with pytest.raises(KeyError):
        outcome.opponent_of(c)


@pytest.mark.parametrize(
    "scores, expected",
    [
        ((0.5, 0.5), True),
        ((1.0, 1.0), True),
        ((0.0, 0.0), True),
        ((1.0, 0.0), False),
        ((0.0, 1.0), False),
        ((0.75, 0.25), False),
    ],
)
def test_is_draw_compares_scores(scores, expected):
    outcome = MatchOutcome(RatingEntity(), RatingEntity(), *scores)
    assert outcome.is_draw() is expected
    if expected:
        assert outcome.winner is None


def test_outcome_is_immutable():
    outcome = MatchOutcome(RatingEntity(), RatingEntity(), 1.0, 0.0)
    with pytest.raises(dataclasses.FrozenInstanceError):
        outcome.first_score = 0.0
    with pytest.raises(TypeError):
        outcome.scores[outcome.first] = 0.0


def test_outcome_requires_distinct_participants():
    a = RatingEntity()
    with pytest.raises(InvalidOutcomeError):
        MatchOutcome(a, a, 1.0, 0.0)


def test_outcome_requires_entities():
    with pytest.raises(InvalidOutcomeError):
        MatchOutcome(RatingEntity(), "bob", 1.0, 0.0)


@pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf"), None, "1", True])
def test_outcome_rejects_bad_scores(bad):
    with pytest.raises(InvalidOutcomeError):
        MatchOutcome(RatingEntity(), RatingEntity(), bad, 0.0)
    with pytest.raises(InvalidOutcomeError):
        MatchOutcome(RatingEntity(), RatingEntity(), 1.0, bad)


def test_outcome_accepts_any_finite_reals():
    outcome = MatchOutcome(RatingEntity(), RatingEntity(), 3, -2.5)
    assert outcome.first_score == 3.0
    assert isinstance(outcome.first_score, float)


def test_outcome_from_scores():
    a, b, c = RatingEntity(), RatingEntity(), RatingEntity()

    outcome = MatchOutcome.from_scores({a: 0.0, b: 1.0})
    assert outcome.participants == (a, b)
    assert outcome.winner is b

    with pytest.raises(InvalidOutcomeError):
        MatchOutcome.from_scores({a: 1.0})
    with pytest.raises(InvalidOutcomeError):
        MatchOutcome.from_scores({a: 1.0, b: 0.0, c: 0.5})


# =============================================================================
# RatingPeriod
# =============================================================================

def test_period_collects_participants():
    a, b, c = RatingEntity(), RatingEntity(), RatingEntity()
    period = RatingPeriod()

    period.add_outcome(MatchOutcome(a, b, 1.0, 0.0))
    period.add_outcome(MatchOutcome(b, c, 0.5, 0.5))
    period.add_outcome(MatchOutcome(a, c, 0.0, 1.0))

    assert len(period) == 3
    assert period.participants == (a, b, c)
    for outcome in period.outcomes:
        for entity in outcome.participants:
            assert entity in period


def test_period_participants_without_outcomes():
    a, b, idle = RatingEntity(), RatingEntity(), RatingEntity()
    period = RatingPeriod([MatchOutcome(a, b, 1.0, 0.0)], participants=[idle, a])

    assert period.participants == (a, b, idle)
    assert period.outcomes_for(idle) == []

    period.add_participant(idle)
    period.add_participants([a, b])
    assert period.num_participants == 3


def test_outcomes_for_is_exact_and_stable():
    a, b, c, d = (RatingEntity() for _ in range(4))
    o1 = MatchOutcome(a, b, 1.0, 0.0)
    o2 = MatchOutcome(c, d, 1.0, 0.0)
    o3 = MatchOutcome(b, a, 0.5, 0.5)
    o4 = MatchOutcome(c, a, 0.0, 1.0)
    o5 = MatchOutcome(b, d, 1.0, 0.0)
    period = RatingPeriod()
    period.add_outcomes([o1, o2, o3, o4, o5])

    assert period.outcomes_for(a) == [o1, o3, o4]
    assert period.outcomes_for(b) == [o1, o3, o5]
    assert period.outcomes_for(c) == [o2, o4]
    assert period.outcomes_for(d) == [o2, o5]
    assert period.outcomes_for(RatingEntity()) == []


def test_period_keeps_duplicate_outcomes():
    a, b = RatingEntity(), RatingEntity()
    outcome = MatchOutcome(a, b, 1.0, 0.0)
    period = RatingPeriod([outcome, outcome])

    assert period.outcomes_for(a) == [outcome, outcome]
    assert period.num_participants == 2


def test_clear_outcomes_keeps_roster():
    a, b = RatingEntity(), RatingEntity()
    period = RatingPeriod([MatchOutcome(a, b, 1.0, 0.0)])

    period.clear_outcomes()

    assert period.num_outcomes == 0
    assert period.participants == (a, b)


def test_clear_empties_everything():
    a, b = RatingEntity(), RatingEntity()
    period = RatingPeriod([MatchOutcome(a, b, 1.0, 0.0)])

    period.clear()

    assert period.num_outcomes == 0
    assert period.num_participants == 0
    assert a not in period


def test_period_from_polars():
    entities = {name: RatingEntity() for name in ["ann", "bo", "cy"]}
    df = pl.DataFrame({
        "Player1": ["ann", "bo", "cy"],
        "Player2": ["bo", "cy", "ann"],
        "Score": [1.0, 0.5, 0.0],
    })

    period = RatingPeriod.from_dataframe(df, entities)

    assert period.num_outcomes == 3
    first, second, third = period.outcomes
    assert first.participants == (entities["ann"], entities["bo"])
    assert (first.first_score, first.second_score) == (1.0, 0.0)
    assert second.is_draw()
    assert third.winner is entities["ann"]


def test_period_from_pandas():
    entities = {i: RatingEntity() for i in range(3)}
    df = pd.DataFrame({"Player1": [0, 1], "Player2": [1, 2], "Score": [1.0, 0.0]})

    period = RatingPeriod.from_dataframe(df, entities)

    assert period.num_outcomes == 2
    assert period.outcomes[1].winner is entities[2]


def test_period_from_dataframe_errors():
    entities = {0: RatingEntity(), 1: RatingEntity()}

    with pytest.raises(ValueError, match="Missing required columns"):
        RatingPeriod.from_dataframe(pl.DataFrame({"Player1": [0], "Player2": [1]}), entities)

    with pytest.raises(InvalidOutcomeError, match="unknown participant"):
        RatingPeriod.from_dataframe(
            pl.DataFrame({"Player1": [0], "Player2": [7], "Score": [1.0]}), entities
        )


def test_period_to_dataframe():
    a, b = RatingEntity(), RatingEntity()
    period = RatingPeriod([MatchOutcome(a, b, 1.0, 0.0), MatchOutcome(b, a, 0.5, 0.5)])

    df = period.to_dataframe()

    assert df.columns == ["first_id", "second_id", "first_score", "second_score"]
    assert df["first_id"].to_list() == [a.id, b.id]
    assert df["second_score"].to_list() == [0.0, 0.5]
    assert RatingPeriod().to_dataframe().height == 0
