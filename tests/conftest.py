import pytest

from helpers import write_ball_project


@pytest.fixture
def ball_project(tmp_path):
    """Path to ball.scml with its single sprite next to it."""
    return write_ball_project(tmp_path / "project")


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "out"
