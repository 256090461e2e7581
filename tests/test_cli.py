"""Tests for the crust command-line entry point."""

import json

from crust.cli import main


def _write(tmp_path, name: str, text: str) -> str:
    path = tmp_path / name
    path.write_text(text)
    return str(path)


def test_help(capsys):
    assert main(["--help"]) == 0
    assert "crust [OPTIONS] FILE" in capsys.readouterr().out


def test_missing_file_argument(capsys):
    assert main([]) == 2
    assert "missing file argument" in capsys.readouterr().err


def test_unknown_flag(capsys):
    assert main(["--fast", "x.cr"]) == 2
    assert "unknown flag '--fast'" in capsys.readouterr().err


def test_unknown_phase(capsys):
    assert main(["--stop-at", "emit", "x.cr"]) == 2
    assert "unknown phase 'emit'" in capsys.readouterr().err


def test_nonexistent_file(tmp_path, capsys):
    assert main([str(tmp_path / "nope.cr")]) == 1
    assert "No such file or directory" in capsys.readouterr().err


def test_invalid_utf8(tmp_path, capsys):
    path = tmp_path / "bad.cr"
    path.write_bytes(b"\xff\xfe")
    assert main([str(path)]) == 1
    assert "invalid utf-8" in capsys.readouterr().err


def test_exit_status_is_main_value(tmp_path):
    path = _write(tmp_path, "ok.cr", "int main() { return 2 + 3 * 4; }\n")
    assert main([path]) == 14
    path = _write(tmp_path, "zero.cr", "int main() { return 5 - 5; }\n")
    assert main([path]) == 0


def test_parse_errors_reported_with_positions(tmp_path, capsys):
    source = "int f() { return 1 }\nint main() { return $; }\n"
    path = _write(tmp_path, "bad.cr", source)
    assert main([path]) == 1
    err = capsys.readouterr().err.splitlines()
    assert err[0] == "crust: " + path + ":2:21: lex error: unexpected character '$'"
    assert err[1] == "crust: " + path + ":1:20: parse error: expected ';', got '}'"
    assert len(err) == 3


def test_runtime_error(tmp_path, capsys):
    path = _write(tmp_path, "div.cr", "int main() { return 10 / 0; }")
    assert main([path]) == 1
    assert capsys.readouterr().err == "crust: runtime error: division by zero\n"


def test_load_error(tmp_path, capsys):
    path = _write(tmp_path, "nomain.cr", "int f() { return 0; }")
    assert main([path]) == 1
    assert "crust: load error: no 'main' function defined" in capsys.readouterr().err


def test_stop_at_tokens(tmp_path, capsys):
    path = _write(tmp_path, "t.cr", "return 1;")
    assert main(["--stop-at", "tokens", path]) == 0
    tokens = json.loads(capsys.readouterr().out)
    assert [t["type"] for t in tokens] == ["return", "NUM", "CTRL", "EOF"]


def test_build_then_run_from_ast(tmp_path, capsys):
    source = "int add(int a, int b) { return a + b; } int main() { return add(2, 3); }"
    src = _write(tmp_path, "add.cr", source)
    tree = str(tmp_path / "add.json")
    assert main(["--stop-at", "parse", "-o", tree, src]) == 0
    assert capsys.readouterr().out == ""
    assert json.loads((tmp_path / "add.json").read_text())["_type"] == "Program"
    (tmp_path / "add.cr").unlink()
    assert main(["--from-ast", tree]) == 5


def test_build_refuses_tree_with_errors(tmp_path, capsys):
    path = _write(tmp_path, "bad.cr", "int main() { return (1 +); }")
    assert main(["--stop-at", "parse", path]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "parse error" in captured.err


def test_from_ast_rejects_bad_tree(tmp_path, capsys):
    path = _write(tmp_path, "bad.json", '{"_type": "Nope"}')
    assert main(["--from-ast", path]) == 1
    assert "invalid tree: expected Program, got Nope" in capsys.readouterr().err


def test_from_ast_rejects_deeply_nested_json(tmp_path, capsys):
    path = _write(tmp_path, "deep.json", "[" * 100000 + "]" * 100000)
    assert main(["--from-ast", path]) == 1
    assert "invalid tree: invalid JSON: nested too deeply" in capsys.readouterr().err


def test_strict_arity_flag(tmp_path, capsys):
    source = "int id(int a) { return a; } int main() { return id(7, 2); }"
    path = _write(tmp_path, "arity.cr", source)
    assert main([path]) == 7
    assert capsys.readouterr().err == ""
    assert main(["--strict-arity", path]) == 1
    assert "takes 1 argument(s) but 2 were given" in capsys.readouterr().err
