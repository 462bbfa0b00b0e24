"""Desired artifact set for a resolved configuration.

The set is recomputed from the current templates on every run. The
.gitignore file is handled separately by the section manager.
"""

from pyve.artifacts.models import ArtifactDescriptor
from pyve.core.types import PYVE_DIR_NAME, Backend, ResolvedConfig

ENVRC_FILE_NAME = ".envrc"
DOTENV_FILE_NAME = ".env"
ASDF_PIN_FILE_NAME = ".tool-versions"
PYENV_PIN_FILE_NAME = ".python-version"

DOTENV_MODE = 0o600

_VENV_ENVRC_TEMPLATE = """\
# Managed by pyve: activates the project virtual environment
export VIRTUAL_ENV="$PWD/{venv_directory}"
PATH_add "$VIRTUAL_ENV/bin"
dotenv_if_exists {dotenv}
"""

_MICROMAMBA_ENVRC_TEMPLATE = """\
# Managed by pyve: activates the project micromamba environment
export CONDA_PREFIX="$PWD/{pyve_dir}/envs/{env_name}"
export CONDA_DEFAULT_ENV="{env_name}"
PATH_add "$CONDA_PREFIX/bin"
dotenv_if_exists {dotenv}
"""


def render_envrc(config: ResolvedConfig) -> str:
    """Render the direnv activation script for a configuration."""
    if config.backend == Backend.MICROMAMBA:
        return _MICROMAMBA_ENVRC_TEMPLATE.format(
            pyve_dir=PYVE_DIR_NAME,
            env_name=config.env_name,
            dotenv=DOTENV_FILE_NAME,
        )
    return _VENV_ENVRC_TEMPLATE.format(
        venv_directory=config.venv_directory,
        dotenv=DOTENV_FILE_NAME,
    )


def render_pin_file(pin_file_name: str, python_version: str) -> str:
    """Render an interpreter pin file for asdf or pyenv."""
    if pin_file_name == ASDF_PIN_FILE_NAME:
        return f"python {python_version}\n"
    return f"{python_version}\n"


def build_desired_artifacts(
    config: ResolvedConfig,
    *,
    pin_file_name: str | None,
    include_envrc: bool,
) -> list[ArtifactDescriptor]:
    """Compute the desired artifacts for a resolved configuration.

    Args:
        config: Resolved configuration for this invocation
        pin_file_name: Version manager pin file (".tool-versions" or
            ".python-version"), or None when no version manager applies
        include_envrc: Whether to generate the direnv activation script

    Returns:
        Descriptors in a stable order
    """
    artifacts: list[ArtifactDescriptor] = []

    if pin_file_name is not None and config.backend == Backend.VENV:
        artifacts.append(
            ArtifactDescriptor(
                relative_path=pin_file_name,
                desired_content=render_pin_file(pin_file_name, config.python_version),
                ownership="tool",
                mode=None,
            )
        )

    if include_envrc:
        artifacts.append(
            ArtifactDescriptor(
                relative_path=ENVRC_FILE_NAME,
                desired_content=render_envrc(config),
                ownership="user",
                mode=None,
            )
        )

    artifacts.append(
        ArtifactDescriptor(
            relative_path=DOTENV_FILE_NAME,
            desired_content="",
            ownership="user",
            mode=DOTENV_MODE,
            adopt_existing=True,
        )
    )
    return artifacts
