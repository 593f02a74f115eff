from pathlib import Path

NIX_FILES = Path(__file__).parent / "nix-files"

configuration_nix = (NIX_FILES / "configuration.nix").read_text()
home_nix = (NIX_FILES / "home.nix").read_text()

single_line = "with pkgs; [ foo bar ];"

no_trailing_separator = """\
environment.systemPackages = with pkgs; [
  foo
  bar ];
"""

no_package_list = """\
{ pkgs, ... }:
{
  services.openssh.enable = true;
}
"""
