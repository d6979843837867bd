"""Configuration loading from pyproject.toml."""

import tomllib
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from ._errors import ConfigError
from ._name import DEFAULT_STORE_DIR


@dataclass(slots=True, frozen=True)
class StoreConfig:
    """Configuration loaded from the ``[tool.storegraph]`` table of pyproject.toml.

    Attributes:
        store_dir: Absolute path of the store root.
        nix: Executable used to query the store.
        extra_args: Extra arguments passed to ``nix path-info``.
        project_root: Directory containing the pyproject.toml, if any.

    """

    store_dir: str = DEFAULT_STORE_DIR
    nix: str = "nix"
    extra_args: tuple[str, ...] = ()
    project_root: Path | None = None


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find pyproject.toml by walking up from start_dir.

    Args:
        start_dir: Starting directory. Defaults to current working directory.

    Returns:
        Path to pyproject.toml if found, None otherwise.

    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        candidate = current / "pyproject.toml"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(pyproject_path: Path) -> StoreConfig:
    """Load and validate [tool.storegraph] config from pyproject.toml.

    Raises:
        ConfigError: If the configuration is invalid

    """
    project_root = pyproject_path.parent

    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    section = data.get("tool", {}).get("storegraph", {})
    if not section:
        return StoreConfig(project_root=project_root)

    store_dir = section.get("store-dir", DEFAULT_STORE_DIR)
    if not isinstance(store_dir, str) or not PurePosixPath(store_dir).is_absolute():
        msg = f"Invalid [tool.storegraph].store-dir: expected absolute path string, got {store_dir!r}"
        raise ConfigError(msg)

    nix = section.get("nix", "nix")
    if not isinstance(nix, str) or not nix:
        msg = "Invalid [tool.storegraph].nix: expected executable name or path"
        raise ConfigError(msg)

    extra_args = section.get("extra-args", [])
    if not isinstance(extra_args, list) or not all(isinstance(arg, str) for arg in extra_args):
        msg = "Invalid [tool.storegraph].extra-args: expected list of strings"
        raise ConfigError(msg)

    return StoreConfig(
        store_dir=store_dir,
        nix=nix,
        extra_args=tuple(extra_args),
        project_root=project_root,
    )


def get_config() -> StoreConfig:
    """Get config from pyproject.toml in current directory or parents.

    Returns:
        StoreConfig (defaults if no pyproject.toml or no [tool.storegraph] section)

    """
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return StoreConfig()
    return load_config(pyproject_path)
