"""
Test suite for the parlay system.

Tests:
1. Correlation penalty engine
2. Same-team stack predicate
3. Combination engine (validity, ranking, options)
"""

import itertools
from collections.abc import Iterator

import pytest
from pydantic import ValidationError

from nfl_parlay.parlay.correlation import (
    calculate_parlay_penalties,
    game_key,
    violates_same_team_stack,
)
from nfl_parlay.parlay.generator import (
    build_parlay,
    generate_parlays,
    get_top_parlays,
    is_valid_parlay,
    iter_leg_combinations,
)
from nfl_parlay.schemas import ConfidenceLevel, Leg, ParlayOptions, StatType


def make_leg(
    player_id,
    prob,
    game_id=None,
    team=None,
    stat_type=StatType.REC_YARDS,
    position='WR',
    game_date=None,
):
    return Leg(
        player_id=player_id,
        player_name=player_id.title(),
        stat_type=stat_type,
        threshold=25,
        raw_prob=prob,
        smoothed_prob=prob,
        confidence=ConfidenceLevel.STRONG,
        sample_size=6,
        game_id=game_id,
        game_date=game_date,
        team=team,
        position=position,
    )


class TestCorrelationPenalties:
    """Multiplicative penalties on the naive joint probability."""

    def test_independent_legs_have_no_penalty(self) -> None:
        legs = [make_leg('a', 0.8, 'g1', 'KC'), make_leg('b', 0.75, 'g2', 'SF')]
        adjusted, penalties = calculate_parlay_penalties(legs)
        assert adjusted == pytest.approx(0.6)
        assert penalties == []

    def test_two_legs_same_game(self) -> None:
        """0.80 x 0.75 from one game: 0.60 x 0.90 = 0.54."""
        legs = [make_leg('a', 0.80, 'g1', 'KC'), make_leg('b', 0.75, 'g1', 'SF')]
        adjusted, penalties = calculate_parlay_penalties(legs)

        assert adjusted == pytest.approx(0.54)
        assert len(penalties) == 1
        assert penalties[0].type == 'same_game'
        assert penalties[0].amount == pytest.approx(0.10)
        assert penalties[0].reason == "2 legs from same game (g1) - 10.0% penalty"

    def test_three_legs_same_game_compound(self) -> None:
        legs = [
            make_leg('a', 0.9, 'g1', 'KC'),
            make_leg('b', 0.9, 'g1', 'SF'),
            make_leg('c', 0.9, 'g1', None),
        ]
        adjusted, penalties = calculate_parlay_penalties(legs)

        assert adjusted == pytest.approx(0.729 * 0.81)
        assert penalties[0].amount == pytest.approx(0.19)
        assert penalties[0].reason == "3 legs from same game (g1) - 19.0% penalty"

    def test_same_team_different_games(self) -> None:
        legs = [make_leg('a', 0.8, 'g1', 'KC'), make_leg('b', 0.8, 'g2', 'KC')]
        adjusted, penalties = calculate_parlay_penalties(legs)

        assert adjusted == pytest.approx(0.64 * 0.95)
        assert [p.type for p in penalties] == ['same_team']
        assert penalties[0].reason == "2 legs from KC - 5.0% penalty"

    def test_legs_without_team_are_not_grouped(self) -> None:
        legs = [make_leg('a', 0.8, 'g1'), make_leg('b', 0.8, 'g2')]
        _, penalties = calculate_parlay_penalties(legs)
        assert penalties == []

    def test_qb_receiver_stack(self) -> None:
        """Same game, same team and stack penalties all apply."""
        legs = [
            make_leg('qb', 0.9, 'g1', 'KC', StatType.PASS_YARDS, 'QB'),
            make_leg('te', 0.8, 'g1', 'KC', StatType.REC_YARDS, 'TE'),
        ]
        adjusted, penalties = calculate_parlay_penalties(legs)

        assert adjusted == pytest.approx(0.72 * 0.90 * 0.95 * 0.85)
        assert [p.type for p in penalties] == ['same_game', 'same_team', 'qb_wr_stack']
        assert penalties[2].amount == pytest.approx(0.15)
        assert penalties[2].reason == "QB pass yards + WR/TE rec yards from KC - 15% penalty"

    def test_penalty_amounts_are_exact(self) -> None:
        legs = [
            make_leg('qb', 0.9, 'g1', 'KC', StatType.PASS_YARDS, 'QB'),
            make_leg('te', 0.8, 'g1', 'KC', StatType.REC_YARDS, 'TE'),
        ]
        _, penalties = calculate_parlay_penalties(legs)
        assert [p.amount for p in penalties] == [0.1, 0.05, 0.15]

    def test_stack_penalty_once_per_team(self) -> None:
        legs = [
            make_leg('qb', 0.9, 'g1', 'KC', StatType.PASS_YARDS, 'QB'),
            make_leg('wr', 0.9, 'g1', 'KC', StatType.REC_YARDS, 'WR'),
            make_leg('te', 0.9, 'g1', 'KC', StatType.REC_YARDS, 'TE'),
        ]
        _, penalties = calculate_parlay_penalties(legs)
        assert [p.type for p in penalties].count('qb_wr_stack') == 1

    def test_qb_rushing_leg_is_not_a_stack(self) -> None:
        legs = [
            make_leg('qb', 0.9, 'g1', 'KC', StatType.RUSH_YARDS, 'QB'),
            make_leg('te', 0.8, 'g2', 'KC', StatType.REC_YARDS, 'TE'),
        ]
        _, penalties = calculate_parlay_penalties(legs)
        assert 'qb_wr_stack' not in [p.type for p in penalties]

    def test_game_date_stands_in_for_game_id(self) -> None:
        legs = [
            make_leg('a', 0.8, game_date='2024-10-13'),
            make_leg('b', 0.8, game_date='2024-10-13'),
        ]
        _, penalties = calculate_parlay_penalties(legs)
        assert penalties[0].reason == "2 legs from same game (2024-10-13) - 10.0% penalty"

    def test_unknown_game_key(self) -> None:
        leg = make_leg('a', 0.8)
        assert game_key(leg) == 'unknown'

    def test_penalties_are_order_independent(self) -> None:
        legs = [
            make_leg('qb', 0.9, 'g1', 'KC', StatType.PASS_YARDS, 'QB'),
            make_leg('te', 0.8, 'g1', 'KC', StatType.REC_YARDS, 'TE'),
            make_leg('rb', 0.85, 'g2', 'SF', StatType.RUSH_YARDS, 'RB'),
        ]
        expected, _ = calculate_parlay_penalties(legs)
        for permutation in itertools.permutations(legs):
            adjusted, _ = calculate_parlay_penalties(list(permutation))
            assert adjusted == pytest.approx(expected)

    def test_adjusted_never_exceeds_naive(self) -> None:
        legs = [make_leg('a', 0.8, 'g1', 'KC'), make_leg('b', 0.8, 'g1', 'KC')]
        parlay = build_parlay(legs)
        assert parlay.adjusted_probability <= parlay.naive_probability
        assert parlay.adjusted_probability >= 0.0


class TestSameTeamStack:
    """Reject predicate, independent of the stack penalty."""

    @pytest.fixture
    def qb(self):
        return make_leg('qb', 0.9, 'g1', 'KC', StatType.PASS_YARDS, 'QB')

    @pytest.fixture
    def te(self):
        return make_leg('te', 0.9, 'g1', 'KC', StatType.REC_YARDS, 'TE')

    def test_disallowed_stack_violates(self, qb, te) -> None:
        assert violates_same_team_stack(qb, te, allow_same_team_stack=False) is True
        assert violates_same_team_stack(te, qb, allow_same_team_stack=False) is True

    def test_allowed_stack_passes(self, qb, te) -> None:
        assert violates_same_team_stack(qb, te, allow_same_team_stack=True) is False

    def test_different_teams_never_violate(self, qb) -> None:
        other = make_leg('wr', 0.9, 'g1', 'SF', StatType.REC_YARDS, 'WR')
        assert violates_same_team_stack(qb, other, allow_same_team_stack=False) is False

    def test_missing_team_never_violates(self) -> None:
        qb = make_leg('qb', 0.9, 'g1', None, StatType.PASS_YARDS, 'QB')
        wr = make_leg('wr', 0.9, 'g1', None, StatType.REC_YARDS, 'WR')
        assert violates_same_team_stack(qb, wr, allow_same_team_stack=False) is False

    def test_receptions_are_not_a_stack(self, qb) -> None:
        wr = make_leg('wr', 0.9, 'g1', 'KC', StatType.RECEPTIONS, 'WR')
        assert violates_same_team_stack(qb, wr, allow_same_team_stack=False) is False


class TestParlayOptions:

    def test_defaults(self) -> None:
        options = ParlayOptions()
        assert options.leg_count == 3
        assert options.min_leg_prob == 0.80
        assert options.allow_same_game is False
        assert options.allow_same_team_stack is False

    @pytest.mark.parametrize("requested,expected", [(1, 2), (2, 2), (5, 5), (8, 8), (12, 8)])
    def test_leg_count_is_clamped(self, requested, expected) -> None:
        assert ParlayOptions(leg_count=requested).leg_count == expected

    def test_non_positive_leg_count_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ParlayOptions(leg_count=0)

    def test_min_leg_prob_out_of_range(self) -> None:
        with pytest.raises(ValidationError):
            ParlayOptions(min_leg_prob=1.2)

    def test_single_game_forces_same_game(self) -> None:
        options = ParlayOptions(single_game=True, allow_same_game=False)
        assert options.allow_same_game is True


class TestCombinationEngine:
    """Enumeration, validity and ranking."""

    @pytest.fixture
    def cross_game_legs(self):
        return [
            make_leg('a', 0.90, 'g1', 'KC'),
            make_leg('b', 0.85, 'g2', 'SF'),
            make_leg('c', 0.82, 'g3', 'BUF'),
            make_leg('d', 0.80, 'g4', 'DAL'),
        ]

    def test_combinations_are_lazy(self, cross_game_legs) -> None:
        combos = iter_leg_combinations(cross_game_legs, 2)
        assert isinstance(combos, Iterator)
        assert len(next(combos)) == 2

    def test_all_cross_game_pairs(self, cross_game_legs) -> None:
        parlays = generate_parlays(cross_game_legs, ParlayOptions(leg_count=2))
        assert len(parlays) == 6
        assert all(len(parlay.legs) == 2 for parlay in parlays)

    def test_ranked_by_adjusted_probability(self, cross_game_legs) -> None:
        parlays = generate_parlays(cross_game_legs, ParlayOptions(leg_count=2))
        probs = [parlay.adjusted_probability for parlay in parlays]
        assert probs == sorted(probs, reverse=True)
        assert {leg.player_id for leg in parlays[0].legs} == {'a', 'b'}

    def test_ties_broken_by_average_leg_probability(self) -> None:
        legs = [
            make_leg('a', 1.0, 'g1'),
            make_leg('b', 0.25, 'g2'),
            make_leg('c', 0.5, 'g3'),
            make_leg('d', 0.5, 'g4'),
        ]
        parlays = generate_parlays(legs, ParlayOptions(leg_count=2, min_leg_prob=0.0))
        ids = [tuple(sorted(leg.player_id for leg in parlay.legs)) for parlay in parlays]
        assert ids.index(('a', 'b')) < ids.index(('c', 'd'))

    def test_min_leg_prob_filters_pool(self, cross_game_legs) -> None:
        parlays = generate_parlays(cross_game_legs, ParlayOptions(leg_count=2, min_leg_prob=0.84))
        assert len(parlays) == 1

    def test_distinct_players(self) -> None:
        legs = [
            make_leg('a', 0.9, 'g1', stat_type=StatType.REC_YARDS),
            make_leg('a', 0.9, 'g2', stat_type=StatType.RECEPTIONS),
        ]
        assert is_valid_parlay(legs, 2, allow_same_game=True, allow_same_team_stack=True) is False
        assert generate_parlays(legs, ParlayOptions(leg_count=2)) == []

    def test_wrong_size_is_invalid(self, cross_game_legs) -> None:
        assert is_valid_parlay(cross_game_legs[:3], 2, True, True) is False

    def test_same_game_rejected_unless_allowed(self) -> None:
        legs = [make_leg('a', 0.9, 'g1', 'KC'), make_leg('b', 0.9, 'g1', 'SF')]
        assert generate_parlays(legs, ParlayOptions(leg_count=2)) == []

        parlays = generate_parlays(legs, ParlayOptions(leg_count=2, allow_same_game=True))
        assert len(parlays) == 1
        assert parlays[0].penalties[0].type == 'same_game'

    def test_unknown_game_keys_collide(self) -> None:
        legs = [make_leg('a', 0.9), make_leg('b', 0.9)]
        assert is_valid_parlay(legs, 2, allow_same_game=False, allow_same_team_stack=False) is False

    def test_stack_rejected_unless_allowed(self) -> None:
        legs = [
            make_leg('qb', 0.9, 'g1', 'KC', StatType.PASS_YARDS, 'QB'),
            make_leg('te', 0.9, 'g1', 'KC', StatType.REC_YARDS, 'TE'),
        ]
        rejected = generate_parlays(legs, ParlayOptions(leg_count=2, allow_same_game=True))
        assert rejected == []

        allowed = generate_parlays(
            legs,
            ParlayOptions(leg_count=2, allow_same_game=True, allow_same_team_stack=True),
        )
        assert len(allowed) == 1
        assert 'qb_wr_stack' in [p.type for p in allowed[0].penalties]

    def test_single_game_mode(self) -> None:
        legs = [
            make_leg('a', 0.9, 'g1', 'KC'),
            make_leg('b', 0.9, 'g1', 'SF'),
            make_leg('c', 0.9, 'g2', 'BUF'),
        ]
        parlays = generate_parlays(legs, ParlayOptions(leg_count=2, single_game=True, game_id='g1'))
        assert len(parlays) == 1
        assert {leg.player_id for leg in parlays[0].legs} == {'a', 'b'}

    def test_single_game_without_game_id_keeps_all_games(self) -> None:
        legs = [
            make_leg('a', 0.9, 'g1', 'KC'),
            make_leg('b', 0.9, 'g1', 'SF'),
            make_leg('c', 0.9, 'g2', 'BUF'),
        ]
        parlays = generate_parlays(legs, ParlayOptions(leg_count=2, single_game=True))
        assert len(parlays) == 3

    def test_pool_smaller_than_leg_count(self, cross_game_legs) -> None:
        assert generate_parlays(cross_game_legs[:2], ParlayOptions(leg_count=3)) == []

    def test_empty_pool(self) -> None:
        assert generate_parlays([]) == []


class TestTopParlays:

    @pytest.fixture
    def legs(self):
        return [
            make_leg('a', 0.90, 'g1', 'KC'),
            make_leg('b', 0.88, 'g2', 'SF'),
            make_leg('c', 0.86, 'g3', 'BUF'),
            make_leg('d', 0.84, 'g4', 'DAL'),
            make_leg('e', 0.82, 'g5', 'PHI'),
        ]

    def test_top_one_matches_full_ranking(self, legs) -> None:
        options = ParlayOptions(leg_count=3)
        full = generate_parlays(legs, options)
        top = get_top_parlays(legs, top_n=1, options=options)
        assert top == full[:1]

    def test_top_n_truncates(self, legs) -> None:
        assert len(get_top_parlays(legs, top_n=4, options=ParlayOptions(leg_count=3))) == 4

    def test_top_zero(self, legs) -> None:
        assert get_top_parlays(legs, top_n=0) == []

    def test_negative_top_n_raises(self, legs) -> None:
        with pytest.raises(ValueError):
            get_top_parlays(legs, top_n=-1)

    def test_input_order_does_not_change_ranking(self, legs) -> None:
        options = ParlayOptions(leg_count=3)
        forward = get_top_parlays(legs, top_n=3, options=options)
        backward = get_top_parlays(list(reversed(legs)), top_n=3, options=options)
        assert [frozenset(leg.player_id for leg in p.legs) for p in forward] == \
            [frozenset(leg.player_id for leg in p.legs) for p in backward]
