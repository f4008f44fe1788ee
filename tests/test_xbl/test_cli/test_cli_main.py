"""Tests for the CLI main module."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from xbl.api.codec import dump
from xbl.cli.main import (
    CLIConfig,
    create_argument_parser,
    format_results,
    main,
    render_tree,
)
from xbl.model.tree import Document
from xbl.model.values import Value
from xbl.shared.config import ConfigError, ValueEncoding


@pytest.fixture(autouse=True)
def reset_xbl_logging():
    """Remove handlers installed by main() between tests."""
    import logging

    yield
    package_logger = logging.getLogger("xbl")
    for handler in list(package_logger.handlers):
        if getattr(handler, "_xbl_handler", False):
            package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


def make_document() -> Document:
    doc = Document()
    root = doc.create_element("Root")
    root.add_attribute("x", Value.string("hi"))
    root.create_child("Kid").add_attribute("n", Value.int32(5))
    return doc


@pytest.fixture
def binary_file(tmp_path: Path) -> Path:
    path = tmp_path / "doc.xbl"
    dump(make_document(), path, ValueEncoding.BINARY)
    return path


class TestCLIConfig:
    """Test CLI configuration management."""

    def test_default_config(self) -> None:
        config = CLIConfig()

        assert config.output_format == "text"
        assert config.codec_config.value_encoding is ValueEncoding.BINARY
        assert config.verbose is False
        assert config.quiet is False

    def test_config_from_file(self, tmp_path: Path) -> None:
        config_path = tmp_path / "xbl.json"
        config_path.write_text(json.dumps({
            "value_encoding": "text",
            "max_depth": 10,
            "output_format": "json",
        }))

        config = CLIConfig.from_file(config_path)

        assert config.output_format == "json"
        assert config.codec_config.value_encoding is ValueEncoding.TEXT
        assert config.codec_config.max_depth == 10

    def test_config_from_nonexistent_file(self) -> None:
        config = CLIConfig.from_file(Path("nonexistent.json"))

        assert config.output_format == "text"

    def test_invalid_config_file(self, tmp_path: Path) -> None:
        config_path = tmp_path / "bad.json"
        config_path.write_text("{broken")

        with pytest.raises(ConfigError):
            CLIConfig.from_file(config_path)

    def test_with_encoding(self) -> None:
        config = CLIConfig()

        assert config.with_encoding(None) is config.codec_config
        assert config.with_encoding("text").value_encoding is ValueEncoding.TEXT


class TestArgumentParser:
    """Test argument parsing."""

    def test_convert_arguments(self) -> None:
        parser = create_argument_parser()

        args = parser.parse_args([
            "convert", "a.xbl", "b.xbl", "--from-encoding", "binary", "--to-encoding", "text",
        ])

        assert args.command == "convert"
        assert args.source == Path("a.xbl")
        assert args.from_encoding == "binary"
        assert args.to_encoding == "text"

    def test_invalid_encoding_choice(self) -> None:
        with pytest.raises(SystemExit):
            create_argument_parser().parse_args(["inspect", "a.xbl", "--encoding", "hex"])


class TestFormatting:
    """Test output formatting."""

    def test_render_tree(self) -> None:
        assert render_tree(make_document()) == (
            "<Root>\n"
            "  @x: String = 'hi'\n"
            "  <Kid>\n"
            "    @n: Int32 = 5"
        )

    def test_format_results_text(self) -> None:
        results = [
            {"file": "a.xbl", "valid": True, "elements": 2, "attributes": 1},
            {"file": "b.xbl", "valid": False, "error_kind": "UNEXPECTED_EOF", "error": "boom"},
        ]

        output = format_results(results, "text")

        assert "Validated 2 files, 1 valid" in output
        assert "OK   a.xbl (2 elements, 1 attributes)" in output
        assert "UNEXPECTED_EOF: boom" in output

    def test_format_results_json(self) -> None:
        results = [{"file": "a.xbl", "valid": True, "elements": 1, "attributes": 0}]

        assert json.loads(format_results(results, "json")) == results

    def test_format_empty(self) -> None:
        assert format_results([], "text") == "No results to display."


class TestMain:
    """Test command dispatch and exit codes."""

    def test_no_command(self, capsys) -> None:
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_inspect_text(self, binary_file: Path, capsys) -> None:
        assert main(["inspect", str(binary_file)]) == 0

        out = capsys.readouterr().out
        assert "<Root>" in out
        assert "@n: Int32 = 5" in out

    def test_inspect_json_to_file(self, binary_file: Path, tmp_path: Path) -> None:
        output = tmp_path / "out.json"

        code = main(["--quiet", "inspect", str(binary_file), "--format", "json", "-o", str(output)])

        assert code == 0
        data = json.loads(output.read_text())
        assert data["element_count"] == 2
        assert data["elements"][0]["name"] == "Root"
        assert data["metrics"]["operation"] == "decode"

    def test_inspect_xml(self, binary_file: Path, capsys) -> None:
        assert main(["inspect", str(binary_file), "--format", "xml"]) == 0

        out = capsys.readouterr().out
        assert out.startswith("<document>")
        assert '<attribute name="n" type="Int32">5</attribute>' in out

    def test_inspect_missing_file(self, tmp_path: Path, capsys) -> None:
        assert main(["inspect", str(tmp_path / "missing.xbl")]) == 1
        assert "Failed to find file" in capsys.readouterr().err

    def test_validate(self, binary_file: Path, tmp_path: Path, capsys) -> None:
        broken = tmp_path / "broken.xbl"
        broken.write_bytes(b"\x0a\x01E\x00")

        assert main(["validate", str(binary_file)]) == 0
        assert "1 valid" in capsys.readouterr().out

        assert main(["validate", str(binary_file), str(broken), "--format", "json"]) == 1
        results = json.loads(capsys.readouterr().out)
        assert results[0]["valid"] is True
        assert results[1]["error_kind"] == "UNTERMINATED_ELEMENT"

    def test_convert(self, binary_file: Path, tmp_path: Path) -> None:
        target = tmp_path / "doc.txt.xbl"

        code = main([
            "-q", "convert", str(binary_file), str(target),
            "--from-encoding", "binary", "--to-encoding", "text",
        ])

        assert code == 0
        assert b"\x01\x015" in target.read_bytes()
        assert main(["validate", "--encoding", "text", str(target)]) == 0

    def test_convert_failure(self, tmp_path: Path) -> None:
        source = tmp_path / "bad.xbl"
        source.write_bytes(b"\x99")

        assert main(["convert", str(source), str(tmp_path / "out.xbl")]) == 1
        assert not (tmp_path / "out.xbl").exists()

    def test_config_option(self, binary_file: Path, tmp_path: Path) -> None:
        config_path = tmp_path / "xbl.json"
        config_path.write_text(json.dumps({"value_encoding": "text"}))

        # TEXT decoding of a BINARY Int32 payload is not a valid literal
        assert main(["--config", str(config_path), "validate", str(binary_file)]) == 1

    def test_invalid_config_option(self, binary_file: Path, tmp_path: Path) -> None:
        config_path = tmp_path / "xbl.json"
        config_path.write_text(json.dumps({"unknown": 1}))

        assert main(["--config", str(config_path), "validate", str(binary_file)]) == 1

    @pytest.mark.parametrize("settings", [
        {"max_depth": "5"},
        {"string_encoding": 5},
        {"string_encoding": "base64"},
        {"global_": "loud"},
    ])
    def test_wrong_typed_config_option(
        self, settings, binary_file: Path, tmp_path: Path, capsys
    ) -> None:
        config_path = tmp_path / "xbl.json"
        config_path.write_text(json.dumps(settings))

        assert main(["--config", str(config_path), "validate", str(binary_file)]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_keyboard_interrupt(self, binary_file: Path) -> None:
        with patch("xbl.cli.main.cmd_inspect", side_effect=KeyboardInterrupt):
            assert main(["inspect", str(binary_file)]) == 130


class TestInspectUnusualDocuments:
    """Test inspect on valid files that stress the output formats."""

    @pytest.fixture
    def deep_file(self, tmp_path: Path) -> Path:
        path = tmp_path / "deep.xbl"
        path.write_bytes(b"\x0a\x01n\x00" * 3000 + b"\x0b" * 3000)
        return path

    @pytest.fixture
    def undecodable_name_file(self, tmp_path: Path) -> Path:
        path = tmp_path / "raw-name.xbl"
        path.write_bytes(b"\x0a\x02\xff\xfe\x00\x0b")
        return path

    def test_deep_text(self, deep_file: Path, capsys) -> None:
        assert main(["validate", str(deep_file)]) == 0
        capsys.readouterr()

        assert main(["inspect", str(deep_file)]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 3000
        assert lines[-1] == "  " * 2999 + "<n>"

    def test_deep_json(self, deep_file: Path, capsys) -> None:
        assert main(["inspect", "--format", "json", str(deep_file)]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["element_count"] == 3000
        assert data["max_depth"] == 2999
        assert data["elements"][-1]["parent"] == data["elements"][-2]["index"]

    def test_deep_xml_reported(self, deep_file: Path, capsys) -> None:
        assert main(["inspect", "--format", "xml", str(deep_file)]) == 1
        assert "too deep for xml output" in capsys.readouterr().err

    def test_undecodable_name_text(self, undecodable_name_file: Path, capsys) -> None:
        assert main(["validate", str(undecodable_name_file)]) == 0
        capsys.readouterr()

        assert main(["inspect", str(undecodable_name_file)]) == 0
        assert capsys.readouterr().out.strip() == r"<\udcff\udcfe>"

    def test_undecodable_name_json(self, undecodable_name_file: Path, capsys) -> None:
        assert main(["inspect", "--format", "json", str(undecodable_name_file)]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["elements"][0]["name"] == "\udcff\udcfe"

    def test_undecodable_name_xml_reported(self, undecodable_name_file: Path, capsys) -> None:
        assert main(["inspect", "--format", "xml", str(undecodable_name_file)]) == 1
        assert "not allowed in XML" in capsys.readouterr().err
