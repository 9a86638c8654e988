import json

from bktrace.cli import EXIT_BAD_PATTERN, EXIT_NO_MATCH, EXIT_OK, main


def test_trace_match(capsys):
    assert main(["trace", "a*c", "aac"]) == EXIT_OK
    out = capsys.readouterr().out
    assert out.startswith("[TRACE] 'a*c' in 'aac' → match [0, 3]")


def test_trace_no_match(capsys):
    assert main(["trace", "x", "abc"]) == EXIT_NO_MATCH
    assert "no match" in capsys.readouterr().out


def test_trace_bad_pattern(capsys):
    assert main(["trace", "(a", "abc"]) == EXIT_BAD_PATTERN
    assert "Unterminated group" in capsys.readouterr().err


def test_trace_json(capsys):
    assert main(["trace", "--json", "ab", "xab"]) == EXIT_OK
    data = json.loads(capsys.readouterr().out)
    assert data["span"] == [1, 3]
    assert [s["node"] for s in data["steps"]] == ["start", "root-0", "root-1", "end"]
    assert [s["string_index"] for s in data["steps"]] == [1, 1, 2, 3]


def test_trace_step_budget(capsys):
    assert main(["trace", "--max-steps", "3", "(x+x+)+y", "xxxxxxxx"]) == EXIT_NO_MATCH
    assert "error" in capsys.readouterr().err


def test_match(capsys):
    assert main(["match", r"a(\d)", "xa1"]) == EXIT_OK
    assert capsys.readouterr().out.strip() == "match [1, 3) groups=['1']"


def test_match_all(capsys):
    assert main(["match", "--all", r"\d", "a1b2"]) == EXIT_OK
    lines = capsys.readouterr().out.splitlines()
    assert lines == ["0: [1, 2) '1' groups=[]", "1: [3, 4) '2' groups=[]"]


def test_explain(capsys):
    assert main(["explain", "a|b"]) == EXIT_OK
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].split()[0] == "root"
    assert len(lines) == 5


def test_diagram_source(capsys):
    assert main(["diagram", "--source", "ab", "ab"]) == EXIT_OK
    out = capsys.readouterr().out
    assert "node-1" in out
    assert "fillcolor=orange" in out


def test_batch(tmp_path, capsys):
    path = tmp_path / "lines.txt"
    path.write_text("cat\ndog\ncatalog\n", encoding="utf-8")
    assert main(["batch", "^cat", str(path)]) == EXIT_OK
    out = capsys.readouterr().out.splitlines()
    assert out[0] == "MATCH  cat"
    assert out[1] == "-----  dog"
    assert out[-1] == "2/3 lines matched"


def test_diagram_step_budget(capsys):
    argv = ["diagram", "--source", "--max-steps", "100", "(x+x+)+y", "x" * 20]
    assert main(argv) == EXIT_NO_MATCH
    assert "gave up after 100 node entries" in capsys.readouterr().err


def test_batch_bad_pattern(tmp_path, capsys):
    path = tmp_path / "lines.txt"
    path.write_text("a\n", encoding="utf-8")
    assert main(["batch", "(", str(path)]) == EXIT_BAD_PATTERN
    assert "error" in capsys.readouterr().err
