"""
Shared fixtures: a scripted decision oracle and a zero-delay config.
"""

import pytest

from cyberswarm.core.config import Config
from cyberswarm.core.models import Task

from .fakes import FakeOracle


@pytest.fixture
def oracle():
    return FakeOracle()


@pytest.fixture
def cfg(tmp_path):
    return Config(
        delay_scale=0,
        simulation_timeout=10,
        output_dir=tmp_path / "output",
        log_dir=tmp_path / "logs",
        scenarios_dir=tmp_path / "scenarios",
    )


@pytest.fixture
def make_task():
    def _make(agent_type="DiscoveryAgent", task_name="network_scan", priority=5, **kw):
        return Task(agent_type=agent_type, task_name=task_name, priority=priority, **kw)

    return _make
