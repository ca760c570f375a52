"""Tests for pricing user-built parlays."""

import pytest
from pydantic import ValidationError

from nfl_parlay.parlay.custom_legs import evaluate_custom_parlay, leg_from_input
from nfl_parlay.schemas import ConfidenceLevel, CustomLegInput, StatType


class TestLegFromInput:

    def test_market_sets_stat_and_position(self) -> None:
        leg = leg_from_input(CustomLegInput(
            player_id='qb1', market='pass_yards', threshold=225, probability=0.86, team='KC',
        ))
        assert leg.stat_type == StatType.PASS_YARDS
        assert leg.position == 'QB'
        assert leg.smoothed_prob == 0.86
        assert leg.confidence == ConfidenceLevel.ELITE
        assert leg.sample_size == 0

    def test_unknown_market_falls_back_to_pass_yards(self) -> None:
        leg = leg_from_input(CustomLegInput(player_id='x', market='anytime_td', threshold=1, probability=0.4))
        assert leg.stat_type == StatType.PASS_YARDS

    def test_probability_must_be_in_range(self) -> None:
        with pytest.raises(ValidationError):
            CustomLegInput(player_id='x', market='rec_yards', threshold=40, probability=1.5)


class TestEvaluateCustomParlay:

    def test_same_game_penalty(self) -> None:
        parlay = evaluate_custom_parlay([
            {'player_id': 'a', 'game_id': 'g1', 'team': 'KC', 'market': 'rush_yards', 'threshold': 40, 'probability': 0.80},
            {'player_id': 'b', 'game_id': 'g1', 'team': 'SF', 'market': 'rec_yards', 'threshold': 40, 'probability': 0.75},
        ])
        assert parlay.naive_probability == pytest.approx(0.60)
        assert parlay.adjusted_probability == pytest.approx(0.54)
        assert [p.type for p in parlay.penalties] == ['same_game']

    def test_stack_is_discounted_not_rejected(self) -> None:
        parlay = evaluate_custom_parlay([
            CustomLegInput(player_id='qb', game_id='g1', team='KC', market='pass_yards', threshold=225, probability=0.9),
            CustomLegInput(player_id='wr', game_id='g1', team='KC', market='rec_yards', threshold=50, probability=0.8),
        ])
        assert [p.type for p in parlay.penalties] == ['same_game', 'same_team', 'qb_wr_stack']
        assert parlay.adjusted_probability == pytest.approx(0.72 * 0.90 * 0.95 * 0.85)

    def test_single_leg(self) -> None:
        parlay = evaluate_custom_parlay([
            {'player_id': 'a', 'market': 'receptions', 'threshold': 4, 'probability': 0.7},
        ])
        assert parlay.adjusted_probability == pytest.approx(0.7)
        assert parlay.penalties == ()

    def test_no_legs(self) -> None:
        with pytest.raises(ValueError):
            evaluate_custom_parlay([])
