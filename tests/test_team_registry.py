"""Tests for team alias resolution and sport/venue helpers."""

import pytest

from betgistics.core.sport_config import Sport
from betgistics.services.team_registry import (
    NBA_TEAMS,
    NFL_TEAMS,
    TeamResolutionError,
    alias_entries,
    detect_sport,
    is_home_venue,
    normalize_alias,
    resolve_team_name,
    team_mentions,
)


def test_rosters_are_complete():
    assert len(NFL_TEAMS) == 32
    assert len(NBA_TEAMS) == 30
    assert len({t.abbreviation for t in NFL_TEAMS}) == 32
    assert len({t.abbreviation for t in NBA_TEAMS}) == 30


def test_college_leagues_share_pro_aliases():
    assert {e.team for e in alias_entries(Sport.CBB)} == set(NBA_TEAMS)
    assert all(e.sport == Sport.CFB for e in alias_entries(Sport.CFB))


@pytest.mark.parametrize("raw, expected", [
    ("  L.A.  Lakers ", "l a lakers"),
    ("49ers", "49ers"),
    ("Hawks!", "hawks"),
])
def test_normalize_alias(raw, expected):
    assert normalize_alias(raw) == expected


class TestResolveTeamName:
    def test_exact_alias(self):
        resolved = resolve_team_name("Hawks", Sport.NBA)
        assert resolved.team.abbreviation == "ATL"
        assert resolved.match_type == "alias"
        assert resolved.confidence == 1.0

    def test_abbreviation(self):
        resolved = resolve_team_name("KC", Sport.NFL)
        assert resolved.team.name == "Chiefs"
        assert resolved.match_type == "abbreviation"

    def test_alias_contained_in_longer_text(self):
        resolved = resolve_team_name("the miami heat", Sport.NBA)
        assert resolved.team.name == "Heat"

    def test_fuzzy_misspelling(self):
        resolved = resolve_team_name("Celtcs", Sport.NBA)
        assert resolved.team.name == "Celtics"
        assert resolved.match_type == "fuzzy"
        assert resolved.confidence >= 0.8

    def test_unknown_team(self):
        with pytest.raises(TeamResolutionError, match="Could not confidently resolve"):
            resolve_team_name("Zzyzx Qwerty", Sport.NBA)

    def test_empty(self):
        with pytest.raises(TeamResolutionError):
            resolve_team_name("  !! ", Sport.NBA)

    def test_shared_city_is_ambiguous_within_a_league(self):
        with pytest.raises(TeamResolutionError, match="Ambiguous"):
            resolve_team_name("Los Angeles", Sport.NBA)

    def test_shared_city_defaults_to_nba_without_sport(self):
        resolved = resolve_team_name("Miami")
        assert resolved.team.name == "Heat"
        assert resolved.sport == Sport.NBA

    def test_nfl_only_alias_without_sport(self):
        resolved = resolve_team_name("Niners")
        assert resolved.team.name == "49ers"
        assert resolved.sport == Sport.NFL


class TestTeamMentions:
    def test_order_of_appearance(self):
        assert team_mentions("Hawks host the Heat tonight", Sport.NBA) == ["hawks", "heat"]

    def test_one_alias_per_team(self):
        mentions = team_mentions("Atlanta Hawks vs Miami Heat", Sport.NBA)
        assert len(mentions) == 2

    def test_does_not_match_inside_words(self):
        # "heat" must not be read out of "cheating"
        assert team_mentions("cheating hawks", Sport.NBA) == ["hawks"]


@pytest.mark.parametrize("text, sport", [
    ("NBA: Heat vs Hawks", Sport.NBA),
    ("nfl sunday: Chiefs at Bills", Sport.NFL),
    ("College football tonight", Sport.CFB),
    ("March Madness pick", Sport.CBB),
    ("Heat vs Hawks", None),
])
def test_detect_sport(text, sport):
    assert detect_sport(text) == sport


def test_is_home_venue():
    hawks = resolve_team_name("Hawks", Sport.NBA).team
    assert is_home_venue("Atlanta", hawks)
    assert is_home_venue("state farm arena", hawks)
    assert not is_home_venue("Miami", hawks)
    assert not is_home_venue("", hawks)


@pytest.mark.parametrize("location", ["la", "LA", "vegas", "ny"])
def test_short_place_names_do_not_hit_atlanta(location):
    hawks = resolve_team_name("Hawks", Sport.NBA).team
    assert not is_home_venue(location, hawks)


def test_place_shorthand_expands():
    lakers = resolve_team_name("Lakers", Sport.NBA).team
    assert is_home_venue("LA", lakers)
    assert is_home_venue("los angeles", lakers)
    assert not is_home_venue("lan", lakers)
