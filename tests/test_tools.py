"""Tests for the tool handlers and their structured error contract."""

import asyncio

import pytest

from betgistics.services import tools
from betgistics.services.bet_logging import BetLogger
from betgistics.services.bet_store import InMemoryBetStore
from betgistics.services.stats_provider import StatsProvider

FOOTBALL_INPUTS = dict(
    team_points_for=28.5,
    team_points_against=21.3,
    opponent_points_for=24.2,
    opponent_points_against=26.8,
    team_off_yards=395,
    team_def_yards=315,
    opponent_off_yards=362,
    opponent_def_yards=385,
    team_turnover_diff=8,
    opponent_turnover_diff=-3,
    spread=-6.5,
)

BASKETBALL_INPUTS = dict(
    team_points_for=115,
    team_points_against=108,
    opponent_points_for=110,
    opponent_points_against=112,
    team_fg_pct=0.48,
    opponent_fg_pct=0.45,
    team_rebound_margin=3,
    opponent_rebound_margin=-1,
    team_turnover_margin=-1,
    opponent_turnover_margin=2,
    spread=-3.5,
)


@pytest.fixture(scope="module")
def stats():
    return StatsProvider()


@pytest.fixture
def bet_logger():
    return BetLogger(InMemoryBetStore())


def test_tool_result_envelope():
    response = tools.ToolResult({"a": 1}, "hello").to_response()
    assert response == {
        "structuredContent": {"a": 1},
        "content": [{"type": "text", "text": "hello"}],
        "isError": False,
    }


class TestEstimateFootball:
    def test_reference_matchup(self):
        result = tools.estimate_football(**FOOTBALL_INPUTS)
        assert not result.is_error
        data = result.structured
        assert data["predictedMargin"] > 0
        assert data["probability"] > 50
        assert data["sigma"] == 13.5
        assert data["sport"] == "football"
        assert "6.5 point spread" in result.text

    def test_home_venue_raises_probability(self):
        neutral = tools.estimate_football(**FOOTBALL_INPUTS).structured["probability"]
        home = tools.estimate_football(**{**FOOTBALL_INPUTS, "venue": "home"}).structured["probability"]
        assert home > neutral

    @pytest.mark.parametrize("field, value", [
        ("team_points_for", 150),
        ("opponent_points_for", 250),
        ("team_off_yards", 1200),
        ("team_turnover_diff", 11),
        ("opponent_turnover_diff", -60),
        ("spread", 101),
        ("team_points_against", float("nan")),
    ])
    def test_out_of_range_inputs(self, field, value):
        result = tools.estimate_football(**{**FOOTBALL_INPUTS, field: value})
        assert result.is_error
        assert result.structured["error"] == "invalid_input"

    def test_bad_venue(self):
        result = tools.estimate_football(**{**FOOTBALL_INPUTS, "venue": "moon"})
        assert result.structured["error"] == "invalid_input"

    def test_estimate_matches_headline_figures(self):
        data = tools.estimate_football(**FOOTBALL_INPUTS).structured
        assert data["estimate"]["probability"] == data["probability"]
        assert data["estimate"]["predicted"] == data["predictedMargin"]
        assert data["estimate"]["line"] == -6.5
        assert data["estimate"]["modelConfidence"] == data["modelConfidence"]


class TestEstimateBasketball:
    def test_reference_matchup(self):
        result = tools.estimate_basketball(**BASKETBALL_INPUTS)
        assert result.structured["predictedMargin"] == pytest.approx(4.9, abs=0.01)
        assert result.structured["sigma"] == 12.0
        assert result.structured["probability"] > 50

    def test_fg_pct_must_be_fraction(self):
        result = tools.estimate_basketball(**{**BASKETBALL_INPUTS, "team_fg_pct": 48})
        assert result.structured["error"] == "invalid_input"

    def test_optional_pace(self):
        result = tools.estimate_basketball(**BASKETBALL_INPUTS, team_pace=105, opponent_pace=105)
        assert result.structured["predictedMargin"] == pytest.approx(4.9 * 1.05, abs=0.01)


class TestEstimateHockeyTotal:
    home = {"xgf": 3.2, "xga": 2.8}
    away = {"xgf": 3.0, "xga": 3.1}

    def test_over_and_under_sum_to_100(self):
        result = tools.estimate_hockey_total(self.home, self.away, 5.5)
        data = result.structured
        assert data["projectedTotal"] == pytest.approx(6.05)
        assert data["overProbability"] > 50
        assert data["overProbability"] + data["underProbability"] == pytest.approx(100.0)
        assert data["breakdown"]["homeGoals"] == pytest.approx(3.15)

    def test_estimate_carries_total_sigma(self):
        data = tools.estimate_hockey_total(self.home, self.away, 5.5).structured
        assert data["estimate"]["predicted"] == pytest.approx(6.05)
        assert data["estimate"]["sigma"] == data["sigma"]
        assert data["estimate"]["probability"] == data["overProbability"]

    def test_under_bet_type(self):
        result = tools.estimate_hockey_total(self.home, self.away, 5.5, bet_type="under")
        assert result.structured["probability"] == result.structured["underProbability"]

    def test_missing_required_stat(self):
        result = tools.estimate_hockey_total({"xgf": 3.0}, self.away, 5.5)
        assert result.structured["error"] == "invalid_input"
        assert "home.xga is required" in result.structured["problems"]


class TestEstimateByName:
    def test_probabilities_sum_to_exactly_one(self, stats):
        result = tools.estimate_by_name(
            "basketball",
            {"team_favorite": "Boston Celtics", "team_underdog": "Charlotte Hornets", "spread": -7.5},
            stats_provider=stats,
        )
        data = result.structured
        assert not result.is_error
        assert data["favorite"] == "Boston Celtics"
        assert data["favorite_cover_probability"] + data["underdog_cover_probability"] == pytest.approx(1.0, abs=1e-9)
        assert data["sigma"] == 12.0

    @pytest.mark.parametrize("spread", [-1.5, -3.5, -9.5, -14.0, -22.5])
    def test_sum_invariant_across_spreads(self, stats, spread):
        data = tools.estimate_by_name(
            "football",
            {"teamA": "Baltimore Ravens", "teamB": "Atlanta Falcons", "spread": spread},
            stats_provider=stats,
        ).structured
        assert data["favorite_cover_probability"] + data["underdog_cover_probability"] == pytest.approx(1.0, abs=1e-9)

    def test_positive_spread_flipped(self, stats):
        data = tools.estimate_by_name(
            "basketball", {"fav": "Celtics", "dog": "Hornets", "spread": 4.5}, stats_provider=stats
        ).structured
        assert data["spread"] == -4.5

    def test_zero_spread(self, stats):
        result = tools.estimate_by_name(
            "basketball", {"fav": "Celtics", "dog": "Hornets", "spread": 0}, stats_provider=stats
        )
        assert result.structured["error"] == "invalid_input"
        assert "zero" in result.structured["message"]

    def test_spread_out_of_range(self, stats):
        result = tools.estimate_by_name(
            "basketball", {"fav": "Celtics", "dog": "Hornets", "spread": -60}, stats_provider=stats
        )
        assert result.structured["error"] == "invalid_input"

    def test_missing_fields(self, stats):
        result = tools.estimate_by_name("basketball", {"fav": "Celtics"}, stats_provider=stats)
        assert result.structured["error"] == "invalid_input"
        assert len(result.structured["missing_fields"]) == 2

    def test_unknown_team(self, stats):
        result = tools.estimate_by_name(
            "basketball", {"fav": "Qwxyz Blorp", "dog": "Hornets", "spread": -3}, stats_provider=stats
        )
        assert result.structured["error"] == "team_not_found"
        assert 0 < len(result.structured["suggestions"]) <= 5

    def test_missing_points_is_insufficient_data(self, tmp_path):
        (tmp_path / "nba_team_stats.csv").write_text(
            "team,abbreviation,points_for,points_against\n"
            "Boston Celtics,BOS,116.3,107.2\n"
            "Ghost Town Ghosts,GTG,,\n",
            encoding="utf-8",
        )
        result = tools.estimate_by_name(
            "basketball",
            {"fav": "Boston Celtics", "dog": "Ghost Town Ghosts", "spread": -3},
            stats_provider=StatsProvider(str(tmp_path)),
        )
        assert result.structured["error"] == "insufficient_data"

    def test_secondary_stats_default(self, tmp_path):
        (tmp_path / "nba_team_stats.csv").write_text(
            "team,abbreviation,points_for,points_against\n"
            "Boston Celtics,BOS,116.0,108.0\n"
            "Charlotte Hornets,CHA,106.0,114.0\n",
            encoding="utf-8",
        )
        data = tools.estimate_by_name(
            "basketball",
            {"fav": "Boston Celtics", "dog": "Charlotte Hornets", "spread": -5},
            stats_provider=StatsProvider(str(tmp_path)),
        ).structured
        # Points term only: 0.35 * (8 - -8)
        assert data["predictedMargin"] == pytest.approx(5.6)

    def test_unknown_category(self, stats):
        result = tools.estimate_by_name("curling", {}, stats_provider=stats)
        assert result.structured["error"] == "invalid_input"


class TestKellyCalculate:
    def test_no_value(self):
        result = tools.kelly_calculate(1000, -110, 45, 1)
        assert result.structured["hasValue"] is False
        assert result.structured["stake"] == 0
        assert result.structured["recommendation"].startswith("NO BET")

    def test_value_bet_fields(self):
        data = tools.kelly_calculate(1000, -110, 55, 0.5).structured
        assert data["stake"] == pytest.approx(27.5)
        assert data["impliedProbability"] == pytest.approx(52.38)
        assert "lastCalculated" in data

    @pytest.mark.parametrize("bankroll", [0, -5])
    def test_invalid_bankroll(self, bankroll):
        assert tools.kelly_calculate(bankroll, -110, 55).structured["error"] == "invalid_bankroll"

    @pytest.mark.parametrize("odds", [99.5, -99.5])
    def test_invalid_odds(self, odds):
        assert tools.kelly_calculate(1000, odds, 55).structured["error"] == "invalid_odds"

    @pytest.mark.parametrize("odds", [100, -100])
    def test_even_money_is_valid(self, odds):
        assert not tools.kelly_calculate(1000, odds, 55).is_error

    def test_invalid_probability(self):
        assert tools.kelly_calculate(1000, -110, 120).structured["error"] == "invalid_input"


class TestOddsTools:
    def test_convert_american(self):
        data = tools.convert_odds(150, "american").structured
        assert data["decimal"] == 2.5
        assert data["fractional"] == "3/2"
        assert data["impliedProbability"] == 40.0

    def test_convert_decimal(self):
        assert tools.convert_odds(1.5, "decimal").structured["american"] == -200

    def test_convert_fractional_needs_denominator(self):
        assert tools.convert_odds(5, "fractional").structured["error"] == "invalid_input"
        assert tools.convert_odds(5, "fractional", 2).structured["american"] == 250

    def test_convert_rejects_decimal_at_or_below_one(self):
        assert tools.convert_odds(1.0, "decimal").structured["error"] == "invalid_odds"

    def test_convert_unknown_format(self):
        assert tools.convert_odds(150, "hongkong").structured["error"] == "invalid_input"

    def test_implied_probability_text(self):
        result = tools.implied_probability(150)
        assert result.structured["impliedProbability"] == 40.0
        assert result.text.startswith("These are underdog odds")
        assert tools.implied_probability(-200).text.startswith("These are favorite odds")

    def test_vig(self):
        data = tools.calculate_vig(-110, -110).structured
        assert data["vig"]["percentage"] == pytest.approx(4.76)
        assert data["fairProbabilities"]["side1"] == 50.0
        assert tools.calculate_vig(-110, 50).structured["error"] == "invalid_odds"


class TestBetTools:
    args = {
        "teamA": "Hawks",
        "teamB": "Heat",
        "sport": "nba",
        "spread": -3.5,
        "probability": 58,
        "odds": -110,
        "bankroll": 1000,
        "recommendedStake": 25,
        "actualWager": 25,
    }

    def test_log_bet(self, bet_logger):
        result = asyncio.run(tools.log_bet(self.args, bet_logger=bet_logger))
        data = result.structured
        assert data["betId"].startswith("bet_")
        assert data["edge"] == pytest.approx(5.62)
        assert data["syncedToBackend"] is False
        assert result.text.startswith("## Bet Logged")

    def test_log_bet_missing_numeric_fields(self, bet_logger):
        args = {k: v for k, v in self.args.items() if k not in ("odds", "bankroll")}
        result = asyncio.run(tools.log_bet(args, bet_logger=bet_logger))
        assert result.structured["error"] == "invalid_input"
        assert result.structured["missing_fields"] == ["odds", "bankroll"]

    def test_log_bet_missing_team(self, bet_logger):
        args = {k: v for k, v in self.args.items() if k != "teamB"}
        result = asyncio.run(tools.log_bet(args, bet_logger=bet_logger))
        assert result.structured["error"] == "invalid_input"

    def test_log_bet_invalid_odds(self, bet_logger):
        result = asyncio.run(tools.log_bet({**self.args, "odds": 20}, bet_logger=bet_logger))
        assert result.structured["error"] == "invalid_odds"

    def test_settle_and_history(self, bet_logger):
        logged = asyncio.run(tools.log_bet(self.args, bet_logger=bet_logger, session_id="u1"))
        bet_id = logged.structured["betId"]

        settled = asyncio.run(tools.update_bet_outcome(bet_id, "win", bet_logger=bet_logger))
        assert settled.structured["profit"] == pytest.approx(22.73)

        again = asyncio.run(tools.update_bet_outcome(bet_id, "loss", bet_logger=bet_logger))
        assert again.structured["error"] == "invalid_input"

        history = asyncio.run(tools.bet_history("u1", bet_logger=bet_logger))
        assert history.structured["summary"]["wins"] == 1
        assert "## Bet History" in history.text

    def test_unknown_bet(self, bet_logger):
        result = asyncio.run(tools.update_bet_outcome("bet_1_nope", "win", bet_logger=bet_logger))
        assert result.structured["error"] == "bet_not_found"

    def test_empty_history(self, bet_logger):
        result = asyncio.run(tools.bet_history("nobody", bet_logger=bet_logger))
        assert result.structured["total"] == 0
        assert not result.is_error
