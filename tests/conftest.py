import pytest
from click.testing import CliRunner
from unittest.mock import MagicMock
from pathlib import Path

from contain.models.config import Configuration
from contain.models.options import GlobalOptions
from contain.utils.user import UserIdentity


@pytest.fixture
def cli_runner():
    """Provides a Click CLI runner for testing commands."""
    return CliRunner()


@pytest.fixture
def mock_docker_client():
    """Provides a mocked Docker SDK client."""
    mock_client = MagicMock()
    mock_client.ping.return_value = True
    mock_client.containers.list.return_value = []
    mock_client.images.list.return_value = []
    return mock_client


@pytest.fixture
def identity():
    """A fixed host user identity."""
    return UserIdentity(uid=1000, gid=1000, username="dev")


@pytest.fixture
def project_dir(tmp_path):
    """Creates a project directory with a nested source directory."""
    project_path = tmp_path / "project"
    (project_path / "src" / "pkg").mkdir(parents=True)
    (project_path / "Dockerfile").write_text("FROM busybox\n")
    return project_path


@pytest.fixture
def write_config():
    """Writes a .contain.yaml into a directory."""
    def _write(directory: Path, content: str) -> Path:
        path = directory / ".contain.yaml"
        path.write_text(content)
        return path
    return _write


@pytest.fixture
def make_config(project_dir):
    """Builds a resolved Configuration rooted at the project directory."""
    def _make(**kwargs):
        values = dict(image="busybox", dockerfile="Dockerfile", root_path=project_dir)
        values.update(kwargs)
        return Configuration(**values)
    return _make


@pytest.fixture
def options():
    """Default global options."""
    return GlobalOptions()


@pytest.fixture(autouse=True)
def clean_contain_environment(monkeypatch):
    """Keep the host's contain variables out of every test."""
    for name in ("CONTAIN_PASSTHROUGH", "CONTAIN_LOG", "CONTAIN_WORKDIR", "CONTAIN_ROOT_PATH"):
        monkeypatch.delenv(name, raising=False)
