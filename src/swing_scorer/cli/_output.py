from rich.console import Console
from rich.table import Table

from swing_scorer.domain.readiness import CalibrationResult, ReadinessReport
from swing_scorer.domain.score import Dimension, FourBScore, Projections
from swing_scorer.domain.sensor import SensorPrediction
from swing_scorer.domain.session import DataQualityReport

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def print_error(message: str) -> None:
    err_console.print(f"[red bold]Error:[/red bold] {message}")


def print_warnings(warnings: tuple[str, ...]) -> None:
    for warning in warnings:
        console.print(f"  [yellow]![/yellow] {warning}")


def _score_color(score: int) -> str:
    if score >= 60:
        return "green"
    if score >= 45:
        return "white"
    return "red"


def print_four_b_score(score: FourBScore) -> None:
    console.print(
        f"[bold]4B Score[/bold]  composite [bold {_score_color(score.composite)}]{score.composite}[/bold "
        f"{_score_color(score.composite)}] ({score.grades.overall})"
    )
    console.print()

    gated = set(score.data_quality.gated_scores)
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("Dimension")
    table.add_column("Score", justify="right")
    table.add_column("Grade")
    table.add_column("Weight", justify="right")
    for dim in Dimension:
        value = score.dimension(dim)
        note = " [dim](gated)[/dim]" if dim.value in gated else ""
        table.add_row(
            dim.value.title(),
            f"[{_score_color(value)}]{value}[/{_score_color(value)}]",
            f"{getattr(score.grades, dim.value)}{note}",
            f"{getattr(score.weights, dim.value):.2f}",
        )
    console.print(table)
    console.print(
        f"  Flows: ground {score.flows.ground_flow}  core {score.flows.core_flow}  upper {score.flows.upper_flow}"
    )
    console.print()

    if score.components:
        print_components(score)
    console.print(f"[bold]Leak:[/bold] {score.leak.leak_type.value}  {score.leak.caption}")
    console.print(f"  Focus: {score.leak.training_focus}")
    if score.leak.message:
        console.print(f"  [dim]{score.leak.message}[/dim]")
    console.print()

    if score.projections is not None:
        print_projections(score.projections)
    if score.readiness is not None:
        print_readiness(score.readiness)
    print_data_quality(score.data_quality, score.config_version)


def print_components(score: FourBScore) -> None:
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("Group")
    table.add_column("Metric")
    table.add_column("Raw", justify="right")
    table.add_column("Band", justify="right")
    table.add_column("Score", justify="right")
    for group in sorted(score.components):
        for component in score.components[group]:
            band = f"{component.band.min:g}-{component.band.max:g}"
            if component.band.invert:
                band += " (inv)"
            table.add_row(group, component.metric, f"{component.raw:.1f}", band, str(component.score))
    console.print(table)
    console.print()


def print_projections(projections: Projections) -> None:
    console.print(f"[bold]Projections[/bold] ({projections.level.value}, {projections.method})")
    console.print(f"  Delivery efficiency: {projections.delivery_efficiency_pct:.1f}%")
    console.print(
        f"  Bat speed: {projections.current_bat_speed:.1f} mph, ceiling {projections.ceiling_bat_speed:.1f} mph"
    )
    console.print(f"  Exit speed: {projections.current_exit_speed} mph, ceiling {projections.ceiling_exit_speed} mph")
    console.print()


def print_readiness(readiness: ReadinessReport) -> None:
    b = readiness.buckets
    label = "calibrated" if readiness.calibrated else "default"
    console.print(f"[bold]Kinetic readiness[/bold] ({label} model)")
    console.print(f"  B1 {b.b1:.0f}  B2 {b.b2:.0f}  B3 {b.b3:.0f}  B4 {b.b4:.0f}")
    console.print(
        f"  Expected {readiness.expected_bat_speed:.1f} mph, measured {readiness.measured.mph:.1f} mph "
        f"[dim]({readiness.measured.source.value}, {readiness.measured.confidence})[/dim]"
    )
    if readiness.primary_bucket is not None:
        console.print(f"  Primary limiter: {readiness.primary_bucket.value} {readiness.primary_title}")
    console.print()


def print_data_quality(quality: DataQualityReport, config_version: str) -> None:
    console.print(f"[bold]Data quality:[/bold] {quality.quality.value} ({quality.swing_count} swings)")
    console.print(f"  Contact: {quality.contact_confidence}  Bat KE coverage: {quality.bat_ke_coverage:.0%}")
    console.print(f"  [dim]Config {config_version}[/dim]")
    print_warnings(quality.warnings)


def print_sensor_prediction(prediction: SensorPrediction) -> None:
    facts = prediction.facts
    console.print(
        f"[bold]Sensor prediction[/bold] ({prediction.age_group}, {facts.swing_count} swings, "
        f"data {prediction.data_quality})"
    )
    console.print(f"  Bat speed: max {facts.bat_speed_max:.1f} mph, mean {facts.bat_speed_mean:.1f} mph")
    console.print()

    potential = prediction.kinetic_potential
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("Area")
    table.add_column("Unlock (mph)", justify="right")
    table.add_column("Confidence")
    table.add_column("Reasoning")
    for name, share in (("Release", potential.release), ("Timing", potential.timing), ("Upstream", potential.upstream)):
        table.add_row(name, f"{share.value:.1f}", share.confidence.value, share.reasoning)
    console.print(table)
    console.print(
        f"  Projected potential: {potential.projected_potential:.1f} mph "
        f"(+{potential.total_unlock:.1f}, {potential.overall_confidence.value})"
    )
    for need in potential.validation_needs:
        console.print(f"  [dim]Needs: {need}[/dim]")
    if prediction.invalid_swings:
        console.print(f"  [dim]{prediction.invalid_swings} swings rejected by validation[/dim]")
    print_warnings(prediction.warnings)


def print_calibration_result(result: CalibrationResult) -> None:
    m = result.model
    console.print(f"[bold green]Calibrated[/bold green] athlete model on {result.sample_count} swings")
    console.print(f"  beta_0 = {m.beta_0:.3f}")
    console.print(f"  beta_1 = {m.beta_1:.3f}")
    console.print(f"  beta_2 = {m.beta_2:.3f}")
    console.print(f"  beta_3 = {m.beta_3:.3f}")
    console.print(f"  beta_4 = {m.beta_4:.3f}")
    console.print(f"  R² = {result.r_squared:.3f}")
