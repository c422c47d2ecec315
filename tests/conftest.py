"""Shared pytest fixtures for test modules."""

import logging
from collections.abc import Generator

import pytest

from swing_scorer.domain.scoring_config import ScoringConfig
from swing_scorer.pipeline.engine import ScoringEngine


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Generator[None]:
    """CLI commands reconfigure the root logger; put it back after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def scoring_config() -> ScoringConfig:
    return ScoringConfig()


@pytest.fixture
def engine(scoring_config: ScoringConfig) -> ScoringEngine:
    return ScoringEngine(config=scoring_config)
