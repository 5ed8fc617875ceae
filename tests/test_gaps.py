"""Tests for documentation gap analysis."""

import pytest

from llm_doc_commenter.src.extractor import StructuralExtractor
from llm_doc_commenter.src.gaps import (
    DocumentationGapAnalyzer,
    comment_segments,
    find_markers,
)
from llm_doc_commenter.src.languages import C_COMMENTS, PYTHON_COMMENTS


def _report(file_path, text, window_lines=10):
    structure = StructuralExtractor().extract_text(file_path, text)
    return DocumentationGapAnalyzer(window_lines=window_lines).analyze(structure)


def test_undocumented_function_has_both_gaps():
    report = _report("math.js", "function add(a, b) {\n  return a + b;\n}\n")

    assert report.total_elements == 1
    assert report.has_missing_docs
    assert len(report.gaps) == 1
    gap = report.gaps[0]
    assert gap.element.name == "add"
    assert gap.missing_technical and gap.missing_simple
    assert [e.name for e in report.missing_technical] == ["add"]
    assert [e.name for e in report.missing_simple] == ["add"]


def test_documented_function_has_no_gap():
    """Both markers in the block above the function mean it is documented."""
    print("=" * 70)
    print("TEST: Documented function")
    print("=" * 70)

    text = (
        "/**\n"
        " * Technical Explanation: adds two numbers.\n"
        " * Simple Explanation: like counting on your fingers.\n"
        " */\n"
        "function add(a, b) {\n"
        "  return a + b;\n"
        "}\n"
    )
    report = _report("math.js", text)

    assert report.total_elements == 1
    assert report.gaps == []
    assert not report.has_missing_docs
    print("\n[PASS] No gaps reported")


def test_marker_synonyms_and_case():
    text = (
        "// TECHNISCHE ERKLÄRUNG: addiert\n"
        "// Einfache Erklärung: wie Zählen\n"
        "function add(a, b) {}\n"
    )
    assert _report("math.js", text).gaps == []

    text = (
        "/* technical description: adds\n"
        "   plain explanation: counts */\n"
        "function add(a, b) {}\n"
    )
    assert _report("math.js", text).gaps == []


def test_only_technical_marker():
    text = "// Technical Explanation: adds\nfunction add(a, b) {}\n"
    gap = _report("math.js", text).gaps[0]

    assert not gap.missing_technical
    assert gap.missing_simple


def test_markers_outside_comments_do_not_count():
    text = (
        'const label = "Technical Explanation and Simple Explanation";\n'
        "function add(a, b) {}\n"
    )
    gap = _report("math.js", text).gaps[0]
    assert gap.missing_technical and gap.missing_simple


def test_window_size_limits_the_search():
    """A comment further up than the window is not seen."""
    text = (
        "// Technical Explanation: a\n"
        "// Simple Explanation: b\n"
        + "\n" * 11
        + "function far() {}\n"
    )
    assert len(_report("far.js", text, window_lines=10).gaps) == 1
    assert _report("far.js", text, window_lines=20).gaps == []


def test_window_starting_inside_a_block_comment():
    """Text before the first close of a block is treated as comment."""
    filler = " * filler line\n" * 12
    text = (
        "/**\n"
        + filler
        + " * Technical Explanation: x\n"
        " * Simple Explanation: y\n"
        " */\n"
        "function f() {}\n"
    )
    report = _report("f.js", text)
    assert report.structure.functions[0].line_number == 17
    assert report.gaps == []


def test_python_hash_comments():
    documented = (
        "# Technical Explanation: greets\n"
        "# Simple Explanation: says hello\n"
        "def greet():\n"
        "    pass\n"
    )
    assert _report("greet.py", documented).gaps == []

    undocumented = "import os\n\ndef greet():\n    pass\n"
    report = _report("greet.py", undocumented)
    assert [g.element.name for g in report.gaps] == ["greet"]


def test_imports_and_exports_are_not_analyzed():
    text = (
        "import fs from 'fs';\n"
        "export { fs };\n"
    )
    report = _report("index.js", text)
    assert report.total_elements == 0
    assert report.gaps == []

    report = _report("index.js", "export function run() {}\n")
    assert report.total_elements == 1
    assert [g.element.name for g in report.gaps] == ["run"]


def test_gaps_are_ordered_by_position():
    text = (
        "class Greeter:\n"
        "    def greet(self):\n"
        "        pass\n"
        "\n"
        "def helper():\n"
        "    pass\n"
    )
    report = _report("greeter.py", text)
    assert [g.element.name for g in report.gaps] == ["Greeter", "greet", "helper"]


def test_unknown_language_gives_empty_report():
    report = _report("notes.txt", "function add(a, b) {}\n")
    assert report.total_elements == 0
    assert report.gaps == []


@pytest.mark.parametrize("window_lines", [0, -1])
def test_window_must_cover_at_least_one_line(window_lines):
    with pytest.raises(ValueError):
        DocumentationGapAnalyzer(window_lines=window_lines)


def test_comment_segments_merge_consecutive_line_comments():
    segments = comment_segments("// a\n// b\ncode\n// c", C_COMMENTS)
    assert segments == ["// a\n// b", "// c"]


def test_comment_segments_blocks():
    assert comment_segments("x /* a */ y // b", C_COMMENTS) == ["/* a */", "// b"]
    assert comment_segments("/* open\nstill", C_COMMENTS) == ["/* open\nstill"]
    assert comment_segments(" * inside\n */\ncode", C_COMMENTS) == [" * inside\n "]
    assert comment_segments("plain code", C_COMMENTS) == []


def test_comment_segments_hash_syntax():
    text = "# one\n    # two\nx = 1  # three"
    assert comment_segments(text, PYTHON_COMMENTS) == ["# one\n# two", "# three"]


def test_find_markers():
    assert find_markers(["/* TECHNICAL EXPLANATION */", "// simple explanation"]) == (True, True)
    assert find_markers(["// nothing here"]) == (False, False)
    assert find_markers([]) == (False, False)
