import pytest

from declair.document import SourceDocument
from declair.edits import Status
from declair.exceptions import (
    BackupError,
    ConstructNotFoundError,
    MalformedConstructError,
    WriteError,
)
from declair.orchestrator import (
    Action,
    MutationRun,
    Representation,
    Stage,
    _check_syntax,
    apply_mutation,
    plan_mutation,
)
from tests.fixtures import configuration_nix, home_nix, no_package_list


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "configuration.nix"
    path.write_text(configuration_nix)
    return path


def backup_of(path):
    return path.with_name(f"{path.stem}.declair.bak")


def test_plan_mutation_is_pure():
    document = SourceDocument(home_nix)
    result = plan_mutation(document, "bat", Action.INSERT)
    assert result.status is Status.INSERTED
    assert result.representation is Representation.LIST
    assert "[ ripgrep fd bat ]" in result.text
    assert document.text == home_nix


def test_apply_insert_writes_after_backup(config_file):
    run = MutationRun()
    result = apply_mutation(config_file, "htop", Action.INSERT, run=run)
    assert result.status is Status.INSERTED
    assert config_file.read_text() == result.text
    assert "    htop\n  ];" in result.text
    assert backup_of(config_file).read_text() == configuration_nix
    assert result.backup.backup == backup_of(config_file)
    assert run.history == [
        Stage.LOCATED,
        Stage.CLASSIFIED,
        Stage.MUTATED,
        Stage.BACKED_UP,
        Stage.WRITTEN,
    ]


def test_apply_remove(config_file):
    result = apply_mutation(config_file, "vim", Action.REMOVE)
    assert result.status is Status.REMOVED
    assert config_file.read_text() == configuration_nix.replace("    vim\n", "")
    assert backup_of(config_file).read_text() == configuration_nix


def test_noop_insert_writes_nothing(config_file):
    """Backups are only made when a real change is about to be written."""
    run = MutationRun()
    result = apply_mutation(config_file, "git", Action.INSERT, run=run)
    assert result.status is Status.ALREADY_PRESENT
    assert result.backup is None
    assert not backup_of(config_file).exists()
    assert config_file.read_text() == configuration_nix
    assert Stage.BACKED_UP not in run.history


def test_noop_remove_writes_nothing(config_file):
    result = apply_mutation(config_file, "htop", Action.REMOVE)
    assert result.status is Status.NOT_PRESENT
    assert not backup_of(config_file).exists()
    assert config_file.read_text() == configuration_nix


def test_noop_keeps_existing_backup(config_file):
    backup_of(config_file).write_text("previous backup")
    apply_mutation(config_file, "htop", Action.REMOVE)
    assert backup_of(config_file).read_text() == "previous backup"


def test_dry_run_leaves_file_alone(config_file):
    result = apply_mutation(config_file, "htop", Action.INSERT, dry_run=True)
    assert result.status is Status.INSERTED
    assert "htop" in result.text
    assert config_file.read_text() == configuration_nix
    assert not backup_of(config_file).exists()


def test_preserves_crlf_bytes(tmp_path):
    path = tmp_path / "home.nix"
    path.write_bytes(
        b"{ pkgs, ... }:\r\n{\r\n  home.packages = with pkgs; [\r\n"
        b"    fd\r\n  ];\r\n}\r\n"
    )
    apply_mutation(path, "bat", Action.INSERT)
    assert path.read_bytes() == (
        b"{ pkgs, ... }:\r\n{\r\n  home.packages = with pkgs; [\r\n"
        b"    fd\r\n    bat\r\n  ];\r\n}\r\n"
    )


def test_missing_list_without_option_aborts(tmp_path):
    path = tmp_path / "configuration.nix"
    path.write_text(no_package_list)
    run = MutationRun()
    with pytest.raises(ConstructNotFoundError, match="with pkgs"):
        apply_mutation(path, "htop", Action.INSERT, run=run)
    assert run.stage is Stage.ABORTED
    assert not backup_of(path).exists()
    assert path.read_text() == no_package_list


def test_missing_list_falls_back_to_option(tmp_path):
    path = tmp_path / "configuration.nix"
    path.write_text(no_package_list)
    result = apply_mutation(path, "firefox", Action.INSERT, option_available=True)
    assert result.representation is Representation.OPTION
    assert path.read_text() == no_package_list.replace(
        "  services.openssh.enable = true;\n",
        "  services.openssh.enable = true;\n  programs.firefox.enable = true;\n",
    )


def test_option_representation_when_available(config_file):
    result = apply_mutation(
        config_file,
        "firefox",
        Action.INSERT,
        representation=Representation.OPTION,
        option_available=True,
    )
    assert result.representation is Representation.OPTION
    assert "  programs.firefox.enable = true;\n" in config_file.read_text()


def test_option_representation_unavailable_uses_list(config_file):
    result = apply_mutation(
        config_file,
        "htop",
        Action.INSERT,
        representation=Representation.OPTION,
        option_available=False,
    )
    assert result.representation is Representation.LIST
    assert "programs.htop" not in result.text


def test_remove_falls_back_to_option_declaration(config_file):
    result = apply_mutation(config_file, "zsh", Action.REMOVE)
    assert result.status is Status.REMOVED
    assert result.representation is Representation.OPTION
    assert "programs.zsh" not in config_file.read_text()


def test_remove_option_falls_back_to_list(config_file):
    result = apply_mutation(
        config_file, "vim", Action.REMOVE, representation=Representation.OPTION
    )
    assert result.representation is Representation.LIST
    assert result.status is Status.REMOVED


def test_backup_failure_aborts_before_write(config_file, monkeypatch):
    def fail(path):
        raise BackupError("disk full")

    monkeypatch.setattr("declair.orchestrator.create_backup", fail)
    run = MutationRun()
    with pytest.raises(BackupError, match="disk full"):
        apply_mutation(config_file, "htop", Action.INSERT, run=run)
    assert run.stage is Stage.ABORTED
    assert config_file.read_text() == configuration_nix


def test_syntax_breaking_change_is_refused():
    with pytest.raises(MalformedConstructError, match="breaks Nix syntax"):
        _check_syntax("{ a = 1; }", "{ a = 1; ")


def test_already_broken_file_is_not_blamed():
    _check_syntax("{ a = ; }", "{ a = ; b = 1; }")


def test_invalid_name_aborts(config_file):
    run = MutationRun()
    with pytest.raises(ValueError):
        apply_mutation(config_file, "not valid", Action.INSERT, run=run)
    assert run.stage is Stage.ABORTED


def test_unclosed_list_aborts_without_backup(tmp_path):
    text = "{ pkgs, ... }:\n{\n  environment.systemPackages = with pkgs; [\n    vim\n"
    path = tmp_path / "configuration.nix"
    path.write_text(text)
    run = MutationRun()
    with pytest.raises(MalformedConstructError, match="never closed"):
        apply_mutation(path, "htop", Action.INSERT, run=run)
    assert run.stage is Stage.ABORTED
    assert not backup_of(path).exists()
    assert path.read_text() == text


def test_write_failure_keeps_original(config_file, monkeypatch):
    """A failed write leaves the file as it was and points at the backup."""

    def fail(source, destination):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr("declair.document.os.replace", fail)
    run = MutationRun()
    with pytest.raises(WriteError, match="No space left"):
        apply_mutation(config_file, "htop", Action.INSERT, run=run)
    assert run.stage is Stage.ABORTED
    assert config_file.read_text() == configuration_nix
    assert backup_of(config_file).read_text() == configuration_nix
    assert sorted(p.name for p in config_file.parent.iterdir()) == [
        "configuration.declair.bak",
        "configuration.nix",
    ]


def test_write_follows_symlink(tmp_path):
    real = tmp_path / "dotfiles" / "home.nix"
    real.parent.mkdir()
    real.write_text(home_nix)
    link = tmp_path / "home.nix"
    link.symlink_to(real)
    apply_mutation(link, "bat", Action.INSERT)
    assert link.is_symlink()
    assert "[ ripgrep fd bat ]" in real.read_text()


def test_fallback_records_each_stage_once(config_file):
    run = MutationRun()
    apply_mutation(
        config_file,
        "vim",
        Action.REMOVE,
        representation=Representation.OPTION,
        run=run,
    )
    assert run.history == [
        Stage.LOCATED,
        Stage.MUTATED,
        Stage.BACKED_UP,
        Stage.WRITTEN,
    ]
