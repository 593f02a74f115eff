import pytest

from declair.paths import expand_tilde, project_root, resolve_nix_config


def test_expand_tilde(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    assert expand_tilde("~/nixos/configuration.nix") == (
        tmp_path / "nixos" / "configuration.nix"
    )
    assert str(expand_tilde("/etc/nixos")) == "/etc/nixos"


def test_resolve_file(tmp_path):
    path = tmp_path / "custom.nix"
    path.write_text("{ }")
    assert resolve_nix_config(path) == path


def test_resolve_directory_prefers_configuration(tmp_path):
    (tmp_path / "home.nix").write_text("{ }")
    (tmp_path / "configuration.nix").write_text("{ }")
    assert resolve_nix_config(tmp_path) == tmp_path / "configuration.nix"


def test_resolve_directory_falls_back(tmp_path):
    (tmp_path / "home.nix").write_text("{ }")
    assert resolve_nix_config(tmp_path) == tmp_path / "home.nix"


def test_resolve_directory_without_candidates(tmp_path):
    with pytest.raises(FileNotFoundError, match="does not contain"):
        resolve_nix_config(tmp_path)


def test_resolve_missing(tmp_path):
    with pytest.raises(FileNotFoundError, match="not found"):
        resolve_nix_config(tmp_path / "missing")


def test_project_root_finds_git(tmp_path):
    (tmp_path / ".git").mkdir()
    nested = tmp_path / "hosts" / "laptop"
    nested.mkdir(parents=True)
    path = nested / "configuration.nix"
    path.write_text("{ }")
    assert project_root(path) == tmp_path.resolve()
