"""Tests for config_resolver.py module."""

import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from contain.core.config_resolver import (
    ConfigResolver,
    ResolutionContext,
    expand,
    format_location,
    version_tuple,
)
from contain.services.exceptions import (
    CommandError,
    ConfigInvalidValueError,
    ConfigMissingFieldError,
    ConfigParseError,
    NoConfigFoundError,
    PathError,
    VersionMismatchError,
)


BUSYBOX_CONFIG = """
images:
  - commands: ["ls", "cat"]
    image: busybox
    dockerfile: Dockerfile
    ports: ["8080:80"]
"""


@pytest.fixture
def resolver():
    return ConfigResolver(version="0.4.0", environ={"HOME": "/home/dev", "PATH": os.environ.get("PATH", "")})


class TestHelpers:
    """Test suite for the module level helpers."""

    def test_expand_variables(self):
        env = {"NAME": "world", "DIR": "/data"}
        assert expand("hello $NAME", env) == "hello world"
        assert expand("${DIR}/sub", env) == "/data/sub"

    def test_expand_leaves_unknown_variables(self):
        assert expand("$MISSING/x", {}) == "$MISSING/x"

    def test_expand_tilde(self):
        assert expand("~/cache", {"HOME": "/home/dev"}) == "/home/dev/cache"
        assert expand("~", {"HOME": "/home/dev"}) == "/home/dev"
        assert expand("a~/b", {"HOME": "/home/dev"}) == "a~/b"

    def test_expand_tilde_ignores_process_home(self):
        with patch.dict(os.environ, {"HOME": "/home/host"}):
            assert expand("~/cache", {"HOME": "/home/dev"}) == "/home/dev/cache"
            assert expand("~/cache", {}) == "~/cache"

    def test_version_tuple(self):
        assert version_tuple("1.2.3") == (1, 2, 3)
        assert version_tuple("v0.10") == (0, 10)
        assert version_tuple("1.2.3rc1") == (1, 2, 3)
        assert version_tuple("abc") == ()

    def test_format_location(self):
        assert format_location(("images", 0, "mounts", 2, "src")) == "images[0].mounts[2].src"
        assert format_location(("images",)) == "images"


class TestConfigResolver:
    """Test suite for ConfigResolver."""

    def test_resolves_matching_entry(self, resolver, project_dir, write_config):
        write_config(project_dir, BUSYBOX_CONFIG)

        config = resolver.resolve(project_dir, "ls")

        assert config.image == "busybox"
        assert config.dockerfile == "Dockerfile"
        assert config.root_path == project_dir
        assert config.workdir_path == "/workdir"
        assert config.ports == ("8080:80",)
        assert config.name is None
        assert config.source == project_dir / ".contain.yaml"

    def test_walks_up_from_nested_directory(self, resolver, project_dir, write_config):
        write_config(project_dir, BUSYBOX_CONFIG)

        config = resolver.resolve(project_dir / "src" / "pkg", "cat")

        assert config.root_path == project_dir
        assert config.environment["CONTAIN_ROOT_PATH"] == str(project_dir)

    def test_nearest_matching_document_wins(self, resolver, project_dir, write_config):
        write_config(project_dir, BUSYBOX_CONFIG)
        write_config(project_dir / "src", """
images:
  - commands: ls
    image: alpine
    dockerfile: Dockerfile
""")

        config = resolver.resolve(project_dir / "src" / "pkg", "ls")

        assert config.image == "alpine"
        assert config.root_path == project_dir / "src"

    def test_document_without_match_continues_walk(self, resolver, project_dir, write_config):
        write_config(project_dir, BUSYBOX_CONFIG)
        write_config(project_dir / "src", """
images:
  - commands: make
    image: gcc
    dockerfile: Dockerfile
""")

        config = resolver.resolve(project_dir / "src", "cat")

        assert config.image == "busybox"
        assert config.root_path == project_dir

    def test_broken_document_stops_walk(self, resolver, project_dir, write_config):
        write_config(project_dir, BUSYBOX_CONFIG)
        write_config(project_dir / "src", "images: [unclosed\n")

        with pytest.raises(ConfigParseError, match="invalid YAML"):
            resolver.resolve(project_dir / "src", "ls")

    def test_non_mapping_document_is_parse_error(self, resolver, project_dir, write_config):
        write_config(project_dir, "- just\n- a list\n")

        with pytest.raises(ConfigParseError, match="mapping"):
            resolver.resolve(project_dir, "ls")

    def test_no_config_found(self, resolver, project_dir):
        with patch.object(Path, "is_file", return_value=False):
            with pytest.raises(NoConfigFoundError) as exc_info:
                resolver.resolve(project_dir, "lint")

        assert exc_info.value.command == "lint"
        assert "lint" in str(exc_info.value)

    def test_any_matches_every_command(self, resolver, project_dir, write_config):
        write_config(project_dir, """
images:
  - commands: any
    image: toolbox
    dockerfile: Dockerfile
""")

        assert resolver.resolve(project_dir, "lint").image == "toolbox"
        assert resolver.resolve(project_dir, "whatever").image == "toolbox"

    def test_declaration_order_beats_literal_match(self, resolver, project_dir, write_config):
        write_config(project_dir, """
images:
  - commands: [any]
    image: toolbox
    dockerfile: Dockerfile
  - commands: [lint]
    image: linter
    dockerfile: Dockerfile
""")

        assert resolver.resolve(project_dir, "lint").image == "toolbox"

    def test_no_command_takes_first_entry(self, resolver, project_dir, write_config):
        write_config(project_dir, """
images:
  - commands: [make]
    name: builder
    image: gcc
    dockerfile: Dockerfile
  - commands: any
    image: toolbox
    dockerfile: Dockerfile
""")

        config = resolver.resolve(project_dir, None)

        assert config.image == "gcc"
        assert config.name == "builder"

    def test_missing_required_field(self, resolver, project_dir, write_config):
        write_config(project_dir, """
images:
  - commands: ls
    image: busybox
""")

        with pytest.raises(ConfigMissingFieldError) as exc_info:
            resolver.resolve(project_dir, "ls")

        assert exc_info.value.field == "images[0].dockerfile"
        assert str(project_dir / ".contain.yaml") in str(exc_info.value)

    def test_missing_mount_field_has_index_path(self, resolver, project_dir, write_config):
        write_config(project_dir, """
images:
  - commands: ls
    image: busybox
    dockerfile: Dockerfile
    mounts:
      - {type: bind, src: /a, dst: /a}
      - {type: bind, src: /b, dst: /b}
      - {type: bind, dst: /c}
""")

        with pytest.raises(ConfigMissingFieldError) as exc_info:
            resolver.resolve(project_dir, "ls")

        assert exc_info.value.field == "images[0].mounts[2].src"

    def test_unknown_flag_is_invalid(self, resolver, project_dir, write_config):
        write_config(project_dir, """
images:
  - commands: ls
    image: busybox
    dockerfile: Dockerfile
    flags: [turbo]
""")

        with pytest.raises(ConfigInvalidValueError) as exc_info:
            resolver.resolve(project_dir, "ls")

        assert exc_info.value.field == "images[0].flags"

    def test_version_gate(self, resolver, project_dir, write_config):
        write_config(project_dir, """
contain_min_version: "9.1"
images:
  - commands: ls
    image: busybox
    dockerfile: Dockerfile
""")

        with pytest.raises(VersionMismatchError) as exc_info:
            resolver.resolve(project_dir, "ls")

        assert exc_info.value.required == "9.1"
        assert exc_info.value.running == "0.4.0"

    def test_version_gate_applies_before_matching(self, resolver, project_dir, write_config):
        write_config(project_dir, """
contain_min_version: 9.1
images:
  - commands: make
    image: gcc
    dockerfile: Dockerfile
""")

        with pytest.raises(VersionMismatchError):
            resolver.resolve(project_dir, "ls")

    def test_version_gate_passes(self, resolver, project_dir, write_config):
        write_config(project_dir, """
contain_min_version: 0.3
images:
  - commands: ls
    image: busybox
    dockerfile: Dockerfile
""")

        assert resolver.resolve(project_dir, "ls").image == "busybox"

    def test_unquoted_version_keeps_its_text(self, resolver, project_dir, write_config):
        write_config(project_dir, """
contain_min_version: 0.10
images:
  - commands: ls
    image: busybox
    dockerfile: Dockerfile
""")

        with pytest.raises(VersionMismatchError) as exc_info:
            resolver.resolve(project_dir, "ls")

        assert exc_info.value.required == "0.10"

    def test_unquoted_port_mapping_is_not_base_60(self, resolver, project_dir, write_config):
        write_config(project_dir, """
images:
  - commands: ls
    image: busybox
    dockerfile: Dockerfile
    ports: [22:22, 8080:80]
    env: [RETRIES=3]
""")

        config = resolver.resolve(project_dir, "ls")

        assert config.ports == ("22:22", "8080:80")
        assert config.env_variables == ("RETRIES=3",)

    def test_non_string_value_is_invalid(self, resolver, project_dir, write_config):
        write_config(project_dir, """
images:
  - commands: ls
    image: busybox
    dockerfile: Dockerfile
    ports: [true]
""")

        with pytest.raises(ConfigInvalidValueError) as exc_info:
            resolver.resolve(project_dir, "ls")

        assert exc_info.value.field == "images[0].ports[0]"

    def test_start_dir_not_utf8(self, resolver, tmp_path):
        start_dir = tmp_path / os.fsdecode(b"\xff")

        with pytest.raises(PathError) as exc_info:
            resolver.resolve(start_dir, "ls")

        assert exc_info.value.path == start_dir

    def test_environment_expansion(self, project_dir, write_config):
        resolver = ConfigResolver(version="0.4.0", environ={"TAG": "1.36", "CACHE": "/var/cache"})
        write_config(project_dir, """
images:
  - commands: ls
    image: busybox:$TAG
    dockerfile: Dockerfile
    env: ["VERSION=${TAG}"]
    build_args: ["BASE=busybox:$TAG"]
    mounts:
      - type: bind
        src: $CACHE
        dst: /cache
        options: readonly
      - type: bind
        src: data
        dst: /data
      - type: volume
        src: named
        dst: /named
""")

        config = resolver.resolve(project_dir, "ls")

        assert config.image == "busybox:1.36"
        assert config.env_variables == ("VERSION=1.36",)
        assert config.build_args == ("BASE=busybox:1.36",)
        assert config.extra_mounts == (
            "type=bind,src=/var/cache,dst=/cache,readonly",
            f"type=bind,src={project_dir / 'data'},dst=/data",
            "type=volume,src=named,dst=/named",
        )

    def test_workdir_override(self, project_dir, write_config):
        resolver = ConfigResolver(version="0.4.0", environ={"CONTAIN_WORKDIR": "/src"})
        write_config(project_dir, BUSYBOX_CONFIG)

        assert resolver.resolve(project_dir, "ls").workdir_path == "/src"

    def test_relative_workdir_override_is_invalid(self, project_dir, write_config):
        resolver = ConfigResolver(version="0.4.0", environ={"CONTAIN_WORKDIR": "src"})
        write_config(project_dir, BUSYBOX_CONFIG)

        with pytest.raises(ConfigInvalidValueError):
            resolver.resolve(project_dir, "ls")

    def test_var_commands_feed_later_fields(self, resolver, project_dir, write_config):
        write_config(project_dir, """
images:
  - commands: ls
    name: dev-$PROJECT
    image: busybox
    dockerfile: Dockerfile
    var:
      - name: PROJECT
        command: basename "$CONTAIN_ROOT_PATH"
      - name: GREETING
        command: echo "hello $PROJECT"
    env: ["GREETING=$GREETING"]
""")

        config = resolver.resolve(project_dir, "ls")

        assert config.name == "dev-project"
        assert config.env_variables == ("GREETING=hello project",)
        assert config.environment["PROJECT"] == "project"
        assert "PROJECT" not in os.environ

    def test_failing_var_command(self, resolver, project_dir, write_config):
        write_config(project_dir, """
images:
  - commands: ls
    image: busybox
    dockerfile: Dockerfile
    var:
      - name: BROKEN
        command: "echo oops >&2; exit 3"
""")

        with pytest.raises(CommandError, match="exited with code 3: oops"):
            resolver.resolve(project_dir, "ls")

    def test_var_command_runs_in_root(self, resolver, project_dir, write_config):
        write_config(project_dir, BUSYBOX_CONFIG)
        result = MagicMock(returncode=0, stdout="  value\n", stderr="")

        with patch("contain.core.config_resolver.subprocess.run", return_value=result) as mock_run:
            context = ResolutionContext(env={"A": "1"})
            value = resolver.run_variable_command("X", "echo value", project_dir, context)

        assert value == "value"
        mock_run.assert_called_once_with(
            "echo value",
            shell=True,
            cwd=project_dir,
            env={"A": "1"},
            capture_output=True,
            text=True,
        )

    def test_resolution_is_repeatable(self, resolver, project_dir, write_config):
        write_config(project_dir, BUSYBOX_CONFIG)

        first = resolver.resolve(project_dir / "src", "ls")
        second = resolver.resolve(project_dir / "src", "ls")

        assert first == second
