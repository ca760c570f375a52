"""Command-line interface for the NFL Parlay toolkit."""

import json
import logging
from pathlib import Path
from typing import List, Optional

import pandas as pd
import typer

from configs.leg_config import LEG_CONFIG
from configs.parlay_config import PARLAY_CONFIG
from nfl_parlay.config import settings
from nfl_parlay.data.cache import JsonFileCacheStore
from nfl_parlay.data.fetcher import GameLogFetchError, NflverseFetcher
from nfl_parlay.data.gamelog_loader import (
    GameLogLoadError,
    load_game_logs_file,
    load_game_logs_for_range,
)
from nfl_parlay.filters.activity import filter_active_players
from nfl_parlay.models.leg_probability import (
    filter_logs_by_position,
    generate_legs_for_players,
    group_logs_by_player,
    select_near_misses,
)
from nfl_parlay.parlay.custom_legs import evaluate_custom_parlay
from nfl_parlay.parlay.generator import get_top_parlays
from nfl_parlay.parlay.odds_import import match_odds_to_legs, parse_odds_csv
from nfl_parlay.schemas import GameLog, Leg, ParlayOptions
from nfl_parlay.utils.season_utils import get_current_week_data

app = typer.Typer(help="NFL player prop legs and correlation-adjusted parlays")

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

CLI_ERRORS = (GameLogLoadError, GameLogFetchError, ValueError, OSError)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    """NFL Parlay toolkit."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def _load_logs(gamelogs: Optional[Path], week: Optional[int], season: Optional[int]) -> List[GameLog]:
    """Load logs, applying the activity filter when a week is given."""
    logs = load_game_logs_file(gamelogs).game_logs
    if week is None:
        return logs
    season = season or get_current_week_data()['season']
    return filter_active_players(logs, week, season)


def _build_legs(
    logs: List[GameLog],
    last_n: Optional[int],
    min_probability: float,
    min_sample_size: int,
    min_touches: float,
) -> List[Leg]:
    players, logs_by_player = group_logs_by_player(logs)
    return generate_legs_for_players(
        players,
        logs_by_player,
        last_n=last_n,
        min_probability=min_probability,
        min_sample_size=min_sample_size,
        min_touches_per_game=min_touches,
    )


def _read_leg_items(path: Path) -> list:
    """JSON array of legs, or an object with a 'legs' array."""
    payload = json.loads(path.read_text(encoding="utf-8"))
    items = payload.get('legs', []) if isinstance(payload, dict) else payload
    if not isinstance(items, list):
        raise ValueError("legs must be a JSON array")
    return items


def _leg_row(leg: Leg) -> dict:
    return {
        'player': leg.player_name or leg.player_id,
        'team': leg.team,
        'stat': leg.stat_type.value,
        'threshold': leg.threshold,
        'prob': round(leg.smoothed_prob, 3),
        'confidence': leg.confidence.value,
        'n': leg.sample_size,
        'game': leg.game_id,
    }


def _echo_json(payload) -> None:
    typer.echo(json.dumps(payload, indent=2))


@app.command()
def legs(
    gamelogs: Optional[Path] = typer.Option(None, help="Game-log JSON file (default: settings.GAMELOGS_FILE)"),
    week: Optional[int] = typer.Option(None, help="Apply the activity filter for this week"),
    season: Optional[int] = typer.Option(None, help="Season for the activity filter (default: current)"),
    positions: Optional[str] = typer.Option(None, help="Comma-separated positions to keep, e.g. QB,TE"),
    last_n: Optional[int] = typer.Option(None, help="Only use each player's most recent N games"),
    min_prob: float = typer.Option(LEG_CONFIG.min_probability, help="Smoothed probability floor"),
    min_sample: int = typer.Option(LEG_CONFIG.bulk_min_sample_size, help="Minimum games with data"),
    min_touches: float = typer.Option(LEG_CONFIG.min_touches_per_game, help="Touches-per-game floor"),
    limit: Optional[int] = typer.Option(None, help="Show only the first N legs"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Generate candidate legs for every player in the game logs.

    Also reports near misses: the best legs just under --min-prob.

    Examples:
        nfl-parlay legs --gamelogs data/gamelogs.sample.json
        nfl-parlay legs --week 6 --season 2024 --min-prob 0.75 --json
        nfl-parlay legs --positions QB,TE --json > legs.json
    """
    try:
        logs = _load_logs(gamelogs, week, season)
        if positions:
            logs = filter_logs_by_position(logs, positions.split(","))
        all_legs = _build_legs(logs, last_n, min_prob, min_sample, min_touches)
        near_misses = select_near_misses(_build_legs(logs, last_n, 0.0, min_sample, min_touches), min_prob)
    except CLI_ERRORS as e:
        logger.error(f"Leg generation failed: {e}")
        raise typer.Exit(code=1)

    if limit is not None:
        all_legs = all_legs[:limit]

    if as_json:
        _echo_json({
            'legs': [leg.model_dump(mode="json") for leg in all_legs],
            'near_misses': [leg.model_dump(mode="json") for leg in near_misses],
        })
        return

    if all_legs:
        typer.echo(pd.DataFrame([_leg_row(leg) for leg in all_legs]).to_string(index=False))
    else:
        typer.echo(f"No legs with probability >= {min_prob}. Consider lowering --min-prob.")

    if near_misses:
        typer.echo("\nNear misses:")
        typer.echo(pd.DataFrame([_leg_row(leg) for leg in near_misses]).to_string(index=False))


@app.command()
def parlays(
    legs_file: Optional[Path] = typer.Option(None, help="Use legs from this JSON file (e.g. saved 'legs --json' output)"),
    gamelogs: Optional[Path] = typer.Option(None, help="Game-log JSON file (default: settings.GAMELOGS_FILE)"),
    week: Optional[int] = typer.Option(None, help="Apply the activity filter for this week"),
    season: Optional[int] = typer.Option(None, help="Season for the activity filter (default: current)"),
    leg_count: int = typer.Option(PARLAY_CONFIG.default_leg_count, "--legs", help="Legs per parlay (2-8)"),
    min_leg_prob: float = typer.Option(PARLAY_CONFIG.min_leg_prob, help="Minimum leg probability"),
    single_game: bool = typer.Option(False, help="Restrict to one game"),
    game_id: Optional[str] = typer.Option(None, help="Game for --single-game"),
    allow_same_game: bool = typer.Option(False, help="Allow several legs from one game"),
    allow_same_team_stack: bool = typer.Option(False, help="Allow QB pass + WR/TE rec yards stacks"),
    top: int = typer.Option(PARLAY_CONFIG.default_top_n, help="Number of parlays to show"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Rank correlation-adjusted parlays built from generated legs.

    Examples:
        nfl-parlay parlays --legs 3 --top 10
        nfl-parlay parlays --single-game --game-id 2024_06_KC_SF --legs 2
        nfl-parlay parlays --legs-file legs.json --legs 3
    """
    try:
        options = ParlayOptions(
            leg_count=leg_count,
            min_leg_prob=min_leg_prob,
            single_game=single_game,
            game_id=game_id,
            allow_same_game=allow_same_game,
            allow_same_team_stack=allow_same_team_stack,
        )
        if legs_file is not None:
            candidate_legs = [Leg.model_validate(item) for item in _read_leg_items(legs_file)]
        else:
            logs = _load_logs(gamelogs, week, season)
            candidate_legs = _build_legs(
                logs,
                None,
                min_leg_prob,
                LEG_CONFIG.bulk_min_sample_size,
                LEG_CONFIG.min_touches_per_game,
            )
        ranked = get_top_parlays(candidate_legs, top_n=top, options=options)
    except CLI_ERRORS as e:
        logger.error(f"Parlay generation failed: {e}")
        raise typer.Exit(code=1)

    if as_json:
        _echo_json([parlay.model_dump(mode="json") for parlay in ranked])
        return

    if not ranked:
        typer.echo("No valid parlays")
        return

    for rank, parlay in enumerate(ranked, start=1):
        typer.echo(
            f"#{rank}  adjusted {parlay.adjusted_probability:.1%}  "
            f"(naive {parlay.naive_probability:.1%}, avg leg {parlay.average_leg_probability:.1%})"
        )
        for leg in parlay.legs:
            typer.echo(f"    {leg.player_name or leg.player_id} {leg.stat_type.value} {leg.threshold}+ "
                       f"({leg.smoothed_prob:.1%})")
        for penalty in parlay.penalties:
            typer.echo(f"    penalty: {penalty.reason}")


@app.command("parlay-prob")
def parlay_prob(
    legs_file: Path = typer.Argument(..., help="JSON array of legs (or an object with a 'legs' array)"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of text"),
) -> None:
    """Price a user-built parlay.

    Each leg needs player_id, market, threshold and probability; game_id and
    team enable the correlation penalties.

    Examples:
        nfl-parlay parlay-prob my_parlay.json
    """
    try:
        parlay = evaluate_custom_parlay(_read_leg_items(legs_file))
    except json.JSONDecodeError as e:
        logger.error(f"Invalid legs JSON in {legs_file}: {e}")
        raise typer.Exit(code=1)
    except CLI_ERRORS as e:
        logger.error(f"Parlay pricing failed: {e}")
        raise typer.Exit(code=1)

    if as_json:
        _echo_json({
            'base_probability': parlay.naive_probability,
            'penalties': [penalty.model_dump(mode="json") for penalty in parlay.penalties],
            'adjusted_probability': parlay.adjusted_probability,
        })
        return

    typer.echo(f"Base probability:     {parlay.naive_probability:.2%}")
    for penalty in parlay.penalties:
        typer.echo(f"Penalty:              {penalty.reason}")
    typer.echo(f"Adjusted probability: {parlay.adjusted_probability:.2%}")


@app.command("match-odds")
def match_odds(
    odds_file: Path = typer.Argument(..., help="Odds CSV (playerName, statType, line, overOdds, underOdds, book)"),
    gamelogs: Optional[Path] = typer.Option(None, help="Game-log JSON file (default: settings.GAMELOGS_FILE)"),
    week: Optional[int] = typer.Option(None, help="Apply the activity filter for this week"),
    season: Optional[int] = typer.Option(None, help="Season for the activity filter (default: current)"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Compare imported book lines with model probabilities.

    Examples:
        nfl-parlay match-odds data/odds_week6.csv --week 6 --season 2024
    """
    try:
        odds = parse_odds_csv(odds_file.read_text(encoding="utf-8"))
        logs = _load_logs(gamelogs, week, season)
        # No probability floor: every stat that has enough data is matchable
        model_legs = _build_legs(
            logs,
            None,
            0.0,
            LEG_CONFIG.bulk_min_sample_size,
            LEG_CONFIG.min_touches_per_game,
        )
        matches = match_odds_to_legs(odds, model_legs)
    except CLI_ERRORS as e:
        logger.error(f"Odds matching failed: {e}")
        raise typer.Exit(code=1)

    if as_json:
        _echo_json([match.model_dump(mode="json") for match in matches])
        return

    if not matches:
        typer.echo("No imported odds matched a model leg")
        return

    rows = [
        {
            'player': match.imported_odd.player_name,
            'stat': match.leg.stat_type.value,
            'line': match.imported_odd.line,
            'model_line': match.leg.threshold,
            'book': match.imported_odd.book,
            'fair_prob': round(match.imported_odd.fair_implied_prob, 3),
            'model_prob': round(match.leg.smoothed_prob, 3),
            'edge': round(match.edge, 3),
        }
        for match in matches
    ]
    typer.echo(pd.DataFrame(rows).to_string(index=False))


@app.command()
def fetch(
    season: int = typer.Option(..., help="Season"),
    start_week: int = typer.Option(1, help="First week"),
    end_week: int = typer.Option(..., help="Last week"),
    output: Path = typer.Option(settings.DATA_DIR / "gamelogs.json", help="Where to write the game-log JSON"),
) -> None:
    """Download nflverse weekly player stats into a game-log JSON file.

    Examples:
        nfl-parlay fetch --season 2024 --start-week 1 --end-week 6
        nfl-parlay legs --gamelogs data/gamelogs.json --week 7 --season 2024
    """
    try:
        settings.ensure_dirs()
        store = JsonFileCacheStore(settings.CACHE_DIR)
        result = load_game_logs_for_range(
            season,
            start_week,
            end_week,
            fetcher=NflverseFetcher(store=store),
            store=store,
        )
        if not result.game_logs:
            raise ValueError(f"No game logs fetched ({'; '.join(result.errors) or 'empty source'})")

        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w", encoding="utf-8") as f:
            json.dump([log.model_dump(mode="json") for log in result.game_logs], f, indent=2)
    except CLI_ERRORS as e:
        logger.error(f"Fetch failed: {e}")
        raise typer.Exit(code=1)

    for error in result.errors:
        typer.echo(f"⚠️  {error}")
    typer.echo(f"✅ Wrote {len(result.game_logs)} game logs to {output}")


@app.command("clear-cache")
def clear_cache() -> None:
    """Remove every cached nflverse download."""
    store = JsonFileCacheStore(settings.CACHE_DIR)
    if not store.cache_dir.exists():
        typer.echo("Cache is already empty")
        return
    store.clear()
    typer.echo(f"✅ Cleared cache at {store.cache_dir}")


if __name__ == "__main__":
    app()
