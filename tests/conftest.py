"""Summary: Shared pytest fixtures for the backend tests.

Importance: Gives every test isolated storage and provider-free doubles.
Alternatives: Build configs and fakes inside every test.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from breedops.config import AppConfig
from fakes import FakeChannel, FakeMailer, FakeRenderer, build_config


@pytest.fixture
def config_factory(tmp_path: Path) -> Callable[..., AppConfig]:
    def factory(**overrides: Any) -> AppConfig:
        return build_config(str(tmp_path / "test.db"), **overrides)

    return factory


@pytest.fixture
def fake_channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def fake_mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()
