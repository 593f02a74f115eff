from declair.locator import find_list_block
from declair.style import MultiLine, SingleLine, analyze_style
from tests.fixtures import configuration_nix, no_trailing_separator, single_line


def _style(text):
    return analyze_style(text, find_list_block(text))


def test_single_line_default_separator():
    assert _style(single_line) == SingleLine(separator=" ")


def test_single_line_keeps_observed_separator():
    assert _style("with pkgs; [ foo  bar ]") == SingleLine(separator="  ")


def test_single_line_empty():
    assert _style("with pkgs; [ ]") == SingleLine()


def test_multiline_with_trailing_separator():
    assert _style(configuration_nix) == MultiLine(
        indent="    ", trailing_separator=True
    )


def test_multiline_without_trailing_separator():
    assert _style(no_trailing_separator) == MultiLine(
        indent="  ", trailing_separator=False
    )


def test_multiline_indent_skips_bracket_line():
    """An element sharing the opening line does not define the indent."""
    text = "with pkgs; [ foo\n      bar\n];"
    assert _style(text) == MultiLine(indent="      ", trailing_separator=True)


def test_multiline_empty_block_uses_default_unit():
    text = "{\n  home.packages = with pkgs; [\n  ];\n}"
    assert _style(text) == MultiLine(indent="    ", trailing_separator=True)


def test_multiline_crlf():
    text = "with pkgs; [\r\n  foo\r\n];\r\n"
    assert _style(text) == MultiLine(
        indent="  ", trailing_separator=True, newline="\r\n"
    )
