from pathlib import Path
from typing import Annotated, Any

import typer

from swing_scorer.cli._logging import configure_logging
from swing_scorer.cli._output import (
    print_calibration_result,
    print_error,
    print_four_b_score,
    print_sensor_prediction,
)
from swing_scorer.config import RunSettings, create_config, load_run_settings
from swing_scorer.config_scoring import ScoringConfigError, load_scoring_config
from swing_scorer.domain.result import Err, Ok
from swing_scorer.domain.scoring_config import ScoringConfig
from swing_scorer.ingest.column_maps import calibration_sample_mapper, map_rows, sensor_swing_mapper
from swing_scorer.ingest.csv_source import read_csv_rows
from swing_scorer.pipeline.engine import ScoringEngine
from swing_scorer.services import fit_athlete_model, predict_from_sensor, to_json

app = typer.Typer(name="swing", help="Swing scorer: 4B scoring from motion-capture and sensor exports")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable DEBUG logging")] = False,
) -> None:
    """Swing scorer: 4B scoring from motion-capture and sensor exports."""
    configure_logging(verbose=verbose)
    if ctx.invoked_subcommand is None:
        raise typer.Exit()


_LevelOpt = Annotated[str | None, typer.Option("--level", help="Player level: youth, high_school, college, pro")]
_JsonOpt = Annotated[bool, typer.Option("--json", help="Print the report as JSON")]
_ConfigOpt = Annotated[Path | None, typer.Option("--config", help="Scoring config TOML file")]


def _settings(**overrides: Any) -> RunSettings:
    try:
        return load_run_settings(create_config(**overrides))
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None


def _scoring_config(settings: RunSettings) -> ScoringConfig:
    if settings.scoring_config_path is None:
        return ScoringConfig()
    try:
        return load_scoring_config(settings.scoring_config_path)
    except ScoringConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None


def _read_rows(path: Path | None) -> list[dict[str, Any]] | None:
    if path is None:
        return None
    match read_csv_rows(path):
        case Ok(rows):
            return rows
        case Err(e):
            print_error(e.message)
            raise typer.Exit(code=1)


@app.command()
def score(
    kinematics: Annotated[Path | None, typer.Option("--kinematics", help="Inverse-kinematics CSV export")] = None,
    energy: Annotated[Path | None, typer.Option("--energy", help="Momentum-energy CSV export")] = None,
    level: _LevelOpt = None,
    handedness: Annotated[str | None, typer.Option("--handedness", help="Batting side: R or L")] = None,
    config: _ConfigOpt = None,
    strict: Annotated[bool, typer.Option("--strict", help="Drop rows with unparsable values")] = False,
    as_json: _JsonOpt = False,
) -> None:
    """Score a session from its kinematics and/or energy exports."""
    if kinematics is None and energy is None:
        print_error("Provide --kinematics and/or --energy")
        raise typer.Exit(code=1)

    settings = _settings(
        level=level,
        handedness=handedness,
        parse_policy="drop" if strict else None,
        scoring_config_path=str(config) if config is not None else None,
    )
    engine = ScoringEngine(config=_scoring_config(settings))
    result = engine.score_rows(
        _read_rows(kinematics),
        _read_rows(energy),
        policy=settings.parse_policy,
        handedness=settings.handedness,
        level=settings.level,
    )
    if as_json:
        typer.echo(to_json(result))
    else:
        print_four_b_score(result)


@app.command()
def predict(
    sensor_csv: Annotated[Path, typer.Argument(help="Bat-sensor swing CSV export")],
    age_group: Annotated[str | None, typer.Option("--age-group", help="Baseline age group (10u..18u, college, pro)")] = None,
    level: _LevelOpt = None,
    config: _ConfigOpt = None,
    as_json: _JsonOpt = False,
) -> None:
    """Predict kinetic potential from bat-sensor swings."""
    settings = _settings(
        level=level,
        age_group=age_group,
        scoring_config_path=str(config) if config is not None else None,
    )
    scoring = _scoring_config(settings)
    swings = [sensor_swing_mapper(row) for row in _read_rows(sensor_csv) or []]
    try:
        prediction = predict_from_sensor(swings, scoring.sensor, age_group=settings.age_group, level=settings.level)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None
    if as_json:
        typer.echo(to_json(prediction))
    else:
        print_sensor_prediction(prediction)


@app.command()
def calibrate(
    samples_csv: Annotated[Path, typer.Argument(help="CSV of bucket scores (b1..b4) and measured bat speed")],
    min_swings: Annotated[int, typer.Option("--min-swings", help="Minimum swings required to fit")] = 5,
) -> None:
    """Fit a per-player athlete model from readiness buckets and bat speeds."""
    samples = map_rows(_read_rows(samples_csv) or [], calibration_sample_mapper)
    match fit_athlete_model(samples, min_samples=min_swings):
        case Ok(result):
            print_calibration_result(result)
        case Err(e):
            print_error(e.message)
            raise typer.Exit(code=1)
