from declair.lister import list_packages
from tests.fixtures import configuration_nix, home_nix, no_package_list


def test_list_packages_multiline():
    assert list_packages(configuration_nix) == ["vim", "git", "firefox"]


def test_list_packages_single_line():
    assert list_packages(home_nix) == ["ripgrep", "fd"]


def test_list_packages_without_block_is_empty():
    assert list_packages(no_package_list) == []


def test_list_packages_keeps_duplicates_in_order():
    assert list_packages("with pkgs; [ b a b ]") == ["b", "a", "b"]
