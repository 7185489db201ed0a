from santa_draw.services.constraints import load_constraints, parse_constraints


def test_parse_constraints_lowercases_and_trims():
    pairs = parse_constraints(["  Alice ,  Bob  ", "Carol,Dave"])
    assert pairs == {("alice", "bob"), ("carol", "dave")}


def test_parse_constraints_skips_comments_and_blank_lines():
    pairs = parse_constraints(["# couples", "", "   ", "  # indented comment", "Alice, Bob"])
    assert pairs == {("alice", "bob")}


def test_parse_constraints_drops_malformed_lines():
    lines = [
        "Alice",
        "Alice, Bob, Carol",
        ", Bob",
        "Alice ,",
        "Dave, Eve",
    ]
    assert parse_constraints(lines) == {("dave", "eve")}


def test_parse_constraints_is_directional():
    pairs = parse_constraints(["Alice, Bob"])
    assert ("alice", "bob") in pairs
    assert ("bob", "alice") not in pairs


def test_load_constraints_missing_file_is_empty(tmp_path):
    assert load_constraints(tmp_path / "absent.txt") == set()


def test_load_constraints_reads_file(tmp_path):
    path = tmp_path / "constraints.txt"
    path.write_text("# GIVER, RECEIVER\nAlice, Bob\r\nBob, Alice\nJörg, Ärne\n", encoding="utf-8")
    assert load_constraints(path) == {("alice", "bob"), ("bob", "alice"), ("jörg", "ärne")}


def test_load_constraints_directory_is_tolerated(tmp_path):
    assert load_constraints(tmp_path) == set()
