"""
Tests for the command line interface.
"""

import json

import pytest

from rebind.__main__ import main, parse_value, resolve_target
from rebind.errors import IntrospectionError
from rebind.manifest import loads_manifest


class TestParseValue:
    """Test argument parsing."""

    @pytest.mark.parametrize("text,value", [
        ("true", True),
        ("False", False),
        ("42", 42),
        ("-7", -7),
        ("2.5", 2.5),
        ('"hello"', "hello"),
        ("'12'", "12"),
        ("plain", "plain"),
    ])
    def test_parse_value(self, text, value):
        """Test each literal form."""
        result = parse_value(text)
        assert result == value
        assert type(result) is type(value)


class TestResolveTarget:
    """Test target resolution."""

    def test_attribute(self):
        """Test module:attribute targets."""
        from example_natives import Example
        assert resolve_target("example_natives:Example") is Example

    def test_module(self):
        """Test module targets."""
        import example_natives
        assert resolve_target("example_natives") is example_natives

    def test_manifest(self, tmp_path):
        """Test manifest targets."""
        path = tmp_path / "m.yaml"
        path.write_text("module: m\n", encoding="utf-8")
        assert resolve_target(str(path)).module == "m"

    def test_bad_targets(self):
        """Test targets that cannot be loaded."""
        with pytest.raises(IntrospectionError):
            resolve_target("rebind_no_such_module")
        with pytest.raises(IntrospectionError):
            resolve_target("example_natives:Missing")
        with pytest.raises(IntrospectionError):
            resolve_target("example_natives:calls")


class TestCommands:
    """Test CLI commands."""

    def test_list(self, capsys):
        """Test listing exposed functions."""
        assert main(["list", "example_natives:Example"]) == 0
        out = capsys.readouterr().out
        assert "Module: Example" in out
        assert "Functions (6):" in out
        assert "  sum(a: int, b: int) -> int" in out

    def test_check_clean(self, capsys):
        """Test check on an entity without skipped members."""
        assert main(["check", "example_natives:Example"]) == 0
        assert "OK: 6 function(s) exposed, none skipped" in capsys.readouterr().out

    def test_check_skipped(self, capsys):
        """Test check reports skipped members."""
        assert main(["check", "example_natives:Mixed"]) == 1
        out = capsys.readouterr().out
        assert "warning[W001]: skipping 'variadic'" in out
        assert "2 function(s) exposed, 4 skipped" in out

    def test_describe(self, capsys):
        """Test describing one function."""
        assert main(["describe", "example_natives:Example", "sum"]) == 0
        assert "Signature: sum(a: int, b: int) -> int" in capsys.readouterr().out

    def test_describe_json(self, capsys):
        """Test the JSON API reference."""
        assert main(["describe", "example_natives:Example", "--json"]) == 0
        api = json.loads(capsys.readouterr().out)
        assert api["module"] == "Example"
        assert "negate" in api["functions"]

    def test_describe_unknown(self, capsys):
        """Test describing an unknown function."""
        assert main(["describe", "example_natives:Example", "missing"]) == 1
        assert "Unknown function: missing" in capsys.readouterr().err

    def test_call(self, capsys):
        """Test calling a function."""
        assert main(["call", "example_natives:Example", "sum", "2", "3"]) == 0
        assert capsys.readouterr().out.strip() == "5"

    def test_call_string(self, capsys):
        """Test string results are printed with repr."""
        assert main(["call", "example_natives:Example", "shout", "hi"]) == 0
        assert capsys.readouterr().out.strip() == "'HI'"

    def test_call_void(self, capsys):
        """Test void calls print nothing."""
        assert main(["call", "example_natives:Example", "report"]) == 0
        assert capsys.readouterr().out == ""

    def test_call_error(self, capsys):
        """Test call errors are reported as diagnostics."""
        assert main(["call", "example_natives:Example", "sum", "2"]) == 1
        assert "error[E101]: argument count mismatch" in capsys.readouterr().err

    def test_call_unknown(self, capsys):
        """Test calling an unknown function."""
        assert main(["call", "example_natives:Example", "missing"]) == 1
        assert "Unknown function: missing" in capsys.readouterr().err

    def test_export(self, capsys):
        """Test exported manifests parse back."""
        assert main(["export", "example_natives:Example"]) == 0
        manifest = loads_manifest(capsys.readouterr().out)
        assert manifest.module == "Example"
        assert [e.name for e in manifest.functions][:2] == ["sum", "greeting"]

    def test_bad_target(self, capsys):
        """Test unloadable targets."""
        assert main(["list", "rebind_no_such_module"]) == 1
        assert "error[E301]" in capsys.readouterr().err
