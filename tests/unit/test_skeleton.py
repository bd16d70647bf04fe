# tests/unit/test_skeleton.py: Unit tests for example skeletons.

import pytest

from eenv.apply import materialize
from eenv.envfile import serialize
from eenv.skeleton import (
    ExampleAction,
    example_path_for,
    extract_skeleton,
    strip_line,
    write_examples,
)
from eenv.store import MemoryFileStore


@pytest.mark.parametrize(
    "line, expected",
    [
        ("API_KEY=sekret123 # prod key", "API_KEY= # prod key"),
        ("DB_HOST=localhost", "DB_HOST="),
        ("  SPACED = value", "SPACED="),
        ("export TOKEN=abc", "export TOKEN="),
        ("COLOR=abc#def", "COLOR="),
        ("# just a comment", "# just a comment"),
        ("   ", "   "),
        ("NO_EQUALS", "NO_EQUALS"),
    ],
)
def test_strip_line(line, expected):
    assert strip_line(line) == expected


def test_extract_skeleton_preserves_layout():
    """Tests that comments, blank lines and order survive untouched."""
    text = "# top\n\nA=1\nB=two # note\n\n# end\n"
    assert extract_skeleton(text) == "# top\n\nA=\nB= # note\n\n# end\n"


@pytest.mark.parametrize(
    "text",
    [
        "",
        "A=1",
        "A=1\n",
        "A=1\r\nB=2",
        "A=1\rB=2",
        "A=1\u2028B=2\x0cC=3",
        "# c\n\n\nX=y # z\n",
        "garbage\n=\n",
    ],
)
def test_extract_skeleton_keeps_line_count(text):
    """Tests that a skeleton has exactly as many lines as its source."""
    assert len(extract_skeleton(text).splitlines()) == len(text.splitlines())


def test_example_path_for(settings):
    assert example_path_for("api/.env.local", settings) == "api/.env.local.example"


def test_write_examples_creates_then_overwrites(settings):
    """Tests example writing and the created/overwritten report."""
    store = MemoryFileStore({".env": "A=1 # c", "api/.env": "B=2\n"})

    first = write_examples(store, [".env", "api/.env"], settings)
    assert first.actions == {
        ".env.example": ExampleAction.CREATED,
        "api/.env.example": ExampleAction.CREATED,
    }
    assert store.files[".env.example"] == "A= # c\n"
    assert store.files["api/.env.example"] == "B=\n"

    second = write_examples(store, [".env"], settings)
    assert second.actions == {".env.example": ExampleAction.OVERWRITTEN}
    assert second.count == 1


def test_write_examples_skips_unreadable_source(settings):
    """Tests that one failing file does not stop the others."""
    store = MemoryFileStore({".env": "A=1\n"})

    report = write_examples(store, ["missing/.env", ".env"], settings)

    assert report.paths == [".env.example"]


@pytest.mark.parametrize(
    "line, expected",
    [
        ('PASSWORD="hunter2 #topsecret"', "PASSWORD="),
        ('PASSWORD="hunter2 #topsecret" # rotate monthly', "PASSWORD= # rotate monthly"),
        ("PASSWORD='hunter2 #topsecret'", "PASSWORD="),
        ('PASSWORD = "a \\" #b"', "PASSWORD="),
        ('OPEN="unterminated #tail', "OPEN= #tail"),
    ],
)
def test_strip_line_keeps_hash_inside_quotes(line, expected):
    """Tests that ' #' inside a quoted value is stripped with the value."""
    assert strip_line(line) == expected


@pytest.mark.parametrize(
    "value",
    ["hunter2 #topsecret", 'say "hi" #there', "it's #mine", "a\u2028 #b", "c\r #d"],
)
def test_serialized_values_never_reach_the_skeleton(value):
    assert extract_skeleton(serialize({"K": value})) == "K=\n"


def test_materialized_file_skeleton_has_no_secret(settings):
    """Tests apply followed by update on a value containing ' #'."""
    store = MemoryFileStore()
    materialize(store, {".env": {"PASSWORD": "hunter2 #topsecret"}})

    write_examples(store, [".env"], settings)

    example = store.files[".env.example"]
    assert "topsecret" not in example
    assert example == "PASSWORD=\n"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("A=secret\rB=other", "A=\rB="),
        ("A=1\r\nB=2\n", "A=\r\nB=\n"),
        ("A=1\u2028B=2\x85C=3", "A=\u2028B=\x85C="),
    ],
)
def test_extract_skeleton_keeps_terminators(text, expected):
    assert extract_skeleton(text) == expected
