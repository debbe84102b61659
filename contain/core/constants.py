"""Constants used throughout contain."""


# Configuration document
CONFIG_FILE_NAME = ".contain.yaml"
KNOWN_FLAGS = ("root", "k", "i", "privileged")

# Environment variables
ROOT_PATH_ENV = "CONTAIN_ROOT_PATH"
PASSTHROUGH_ENV = "CONTAIN_PASSTHROUGH"
VERBOSE_ENV = "CONTAIN_LOG"
WORKDIR_ENV = "CONTAIN_WORKDIR"

TRUTHY_VALUES = ("1", "true", "yes", "on")
FALSY_VALUES = ("0", "false", "no", "off")

# Files that only exist inside a container
DOCKER_MARKER_FILE = "/.dockerenv"
PODMAN_MARKER_FILE = "/run/.containerenv"

# Docker-related constants
DOCKER_BINARY = "docker"
DEFAULT_WORKDIR = "/workdir"
DEFAULT_SHELL = "/bin/sh"
DEFAULT_USERNAME = "contain"
KEEP_ALIVE_COMMAND = ["sleep", "infinity"]

# Exit codes
DEFAULT_EXIT_CODE = 1
EXEC_FAILED_EXIT_CODE = 127
