"""Tests for the configuration module."""

from pathlib import Path

import pytest

from storegraph import ConfigError, StoreConfig, get_config, load_config
from storegraph._config import find_pyproject_toml


class TestFindPyprojectToml:
    """Tests for find_pyproject_toml function."""

    def test_finds_in_current_directory(self, tmp_path: Path) -> None:
        """Should find pyproject.toml in current directory."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[project]\nname = 'test'\n")

        assert find_pyproject_toml(tmp_path) == pyproject

    def test_finds_in_parent_directory(self, tmp_path: Path) -> None:
        """Should find pyproject.toml in parent directory."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[project]\nname = 'test'\n")

        subdir = tmp_path / "src" / "pkg"
        subdir.mkdir(parents=True)

        assert find_pyproject_toml(subdir) == pyproject

    def test_returns_none_when_not_found(self, tmp_path: Path) -> None:
        """Should return None when no pyproject.toml is found."""
        assert find_pyproject_toml(tmp_path) is None


class TestLoadConfig:
    """Tests for loading the [tool.storegraph] section."""

    def test_no_section_gives_defaults(self, tmp_path: Path) -> None:
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[project]\nname = 'test'\n")

        config = load_config(pyproject)

        assert config == StoreConfig(project_root=tmp_path)
        assert config.store_dir == "/nix/store"
        assert config.nix == "nix"
        assert config.extra_args == ()

    def test_all_fields(self, tmp_path: Path) -> None:
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text(
            """
[tool.storegraph]
store-dir = "/gnu/store"
nix = "/run/current-system/sw/bin/nix"
extra-args = ["--store", "daemon"]
""",
        )

        config = load_config(pyproject)

        assert config.store_dir == "/gnu/store"
        assert config.nix == "/run/current-system/sw/bin/nix"
        assert config.extra_args == ("--store", "daemon")
        assert config.project_root == tmp_path

    @pytest.mark.parametrize(
        ("body", "match"),
        [
            ('store-dir = "relative/store"', "store-dir"),
            ("store-dir = 3", "store-dir"),
            ('nix = ""', "nix"),
            ("nix = []", "nix"),
            ('extra-args = "--store"', "extra-args"),
            ("extra-args = [1, 2]", "extra-args"),
        ],
    )
    def test_invalid_values(self, tmp_path: Path, body: str, match: str) -> None:
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text(f"[tool.storegraph]\n{body}\n")

        with pytest.raises(ConfigError, match=match):
            load_config(pyproject)

    def test_invalid_toml(self, tmp_path: Path) -> None:
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[tool.storegraph\n")

        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(pyproject)


class TestGetConfig:
    def test_reads_from_working_directory(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "pyproject.toml").write_text('[tool.storegraph]\nnix = "nix-custom"\n')
        monkeypatch.chdir(tmp_path)

        assert get_config().nix == "nix-custom"
