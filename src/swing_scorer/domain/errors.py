from dataclasses import dataclass


@dataclass(frozen=True)
class ScorerError:
    message: str


@dataclass(frozen=True)
class IngestError(ScorerError):
    source_detail: str


@dataclass(frozen=True)
class CalibrationError(ScorerError):
    sample_count: int
