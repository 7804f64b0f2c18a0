"""Tests for the free-text matchup parser."""

import pytest

from betgistics.core.sport_config import Sport, Venue
from betgistics.services.matchup_parser import (
    MatchupParseError,
    parse_matchup,
    parse_odds,
    parse_spread,
)


class TestParseMatchup:
    def test_reference_request(self):
        m = parse_matchup("NBA: Heat vs Hawks, Hawks -3.5, taking Hawks")
        assert m.sport == Sport.NBA
        assert m.team_a.name == "Hawks"
        assert m.team_b.name == "Heat"
        assert m.spread == -3.5
        assert m.venue == Venue.NEUTRAL
        assert m.venue_assumed is True
        assert m.american_odds is None
        assert "Odds not provided - will default to -110" in m.notes
        assert "Venue assumed as neutral (not explicitly stated)" in m.notes

    def test_home_city_sets_venue(self):
        m = parse_matchup("NBA: Heat vs Hawks, Hawks -3.5, I'm taking Hawks. Game is in Atlanta.")
        assert m.venue == Venue.HOME
        assert m.venue_assumed is False

    def test_opponent_city_means_away(self):
        m = parse_matchup("NBA: Heat vs Hawks, Hawks -3.5, taking Hawks, game in Miami")
        assert m.venue == Venue.AWAY

    def test_neutral_site(self):
        m = parse_matchup("NFL: Chiefs vs 49ers, Chiefs -2.5 at a neutral site")
        assert m.venue == Venue.NEUTRAL
        assert m.venue_assumed is False

    def test_city_shorthand_inside_other_city_name(self):
        m = parse_matchup("NBA: Lakers vs Hawks, Hawks +3.5, taking Hawks, game in LA")
        assert m.team_a.name == "Hawks"
        assert m.venue == Venue.AWAY
        assert m.venue_assumed is False

    def test_spread_attached_to_opponent_is_flipped(self):
        m = parse_matchup("NBA: Celtics vs Knicks, Celtics -6, I like the Knicks")
        assert m.team_a.name == "Knicks"
        assert m.spread == 6
        assert any(n.startswith("Spread adjusted to 6") for n in m.notes)

    def test_pick_after_filler_words(self):
        m = parse_matchup("NBA: Heat vs Hawks, Hawks -3.5, taking a flyer on the Hawks")
        assert m.team_a.name == "Hawks"
        assert m.spread == -3.5
        assert not any(n.startswith("Pick assumed") for n in m.notes)

    def test_filler_word_does_not_pick_first_team(self):
        m = parse_matchup("NBA: Hawks vs Heat, Heat +3.5, I'm taking a shot on the Heat")
        assert m.team_a.name == "Heat"
        assert m.spread == 3.5

    def test_pick_assumed_from_spread_team(self):
        m = parse_matchup("NBA: Heat vs Hawks, Hawks -3.5")
        assert m.team_a.name == "Hawks"
        assert "Pick assumed to be Hawks (team mentioned with spread)" in m.notes

    def test_pick_assumed_first_team(self):
        m = parse_matchup("NBA: Lakers vs Warriors, favored by 4")
        assert m.team_a.name == "Lakers"
        assert m.spread == -4
        assert "Pick assumed to be Lakers (first team mentioned)" in m.notes

    def test_sport_inferred(self):
        m = parse_matchup("Chiefs vs Bills, Chiefs -2.5, taking Chiefs")
        assert m.sport == Sport.NFL
        assert "Sport inferred as NFL from team names" in m.notes

    def test_number_in_team_name_is_not_a_spread(self):
        m = parse_matchup("NFL: 49ers vs Rams, Rams +3, taking Rams")
        assert m.team_a.name == "Rams"
        assert m.spread == 3

    def test_explicit_odds(self):
        m = parse_matchup("NBA: Heat vs Hawks, Hawks -3.5 at -115, taking Hawks")
        assert m.american_odds == -115

    def test_college_league_uses_pro_names(self):
        m = parse_matchup("CBB: Heat vs Hawks, Hawks -3.5")
        assert m.sport == Sport.CBB

    def test_no_teams(self):
        with pytest.raises(MatchupParseError) as exc_info:
            parse_matchup("I want to bet something tonight")
        assert "teams" in exc_info.value.clarification_needed

    def test_no_spread(self):
        with pytest.raises(MatchupParseError) as exc_info:
            parse_matchup("NBA: Heat vs Hawks, taking Hawks")
        assert exc_info.value.clarification_needed == ["spread"]

    def test_same_team_twice(self):
        with pytest.raises(MatchupParseError, match="same team"):
            parse_matchup("NBA: Hawks vs Atlanta, Hawks -3")


class TestParseSpread:
    @pytest.mark.parametrize("text, expected", [
        ("Hawks favored by 7", -7),
        ("Hawks are 3.5 point favorites", -3.5),
        ("Heat are 6 point underdogs", 6),
        ("Hawks minus three and a half", -3.5),
        ("Heat plus seven", 7),
        ("Hawks -3.5", -3.5),
        ("Heat +2", 2),
        ("Hawks 4.5 pts", 4.5),
    ])
    def test_forms(self, text, expected):
        assert parse_spread(text) == expected

    def test_out_of_range_numbers_ignored(self):
        assert parse_spread("Hawks 120 points per game -3") == -3

    def test_none_when_absent(self):
        assert parse_spread("Heat vs Hawks") is None


@pytest.mark.parametrize("text, expected", [
    ("odds -120", -120),
    ("at +150", 150),
    ("+130 odds", 130),
    ("Hawks -3.5 -105", -105),
    ("Hawks -3.5", None),
])
def test_parse_odds(text, expected):
    assert parse_odds(text) == expected
