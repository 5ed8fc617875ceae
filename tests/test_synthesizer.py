"""Tests for comment synthesis."""

from llm_doc_commenter.src.extractor import StructuralExtractor
from llm_doc_commenter.src.gaps import DocumentationGapAnalyzer
from llm_doc_commenter.src.languages import BLOCK_STYLE, HASH_STYLE
from llm_doc_commenter.src.synthesizer import (
    CommentSynthesizer,
    fallback_documentation,
    insertion_line_for,
)
from llm_doc_commenter.utils.response_schemas import ElementDocumentation, element_key


def _structure(file_path, text):
    return StructuralExtractor().extract_text(file_path, text)


def test_fallback_comment_for_function():
    """The template comment for add(a, b) has both sections and wraps at 79."""
    print("=" * 70)
    print("TEST: Fallback comment")
    print("=" * 70)

    add = _structure("math.js", "function add(a, b) {\n  return a + b;\n}\n").functions[0]
    insertion = CommentSynthesizer().synthesize(add, style=BLOCK_STYLE, file_path="math.js")

    print(f"\n{insertion.content}")
    assert insertion.content == "\n".join([
        "/** function add",
        " * Technical Explanation:",
        " * The function 'add' performs a specific operation.",
        " * Signature: function add(a, b)",
        " *",
        " * Simple Explanation:",
        " * This function is like a tool: it takes something in and gives something",
        " * back.",
        " */",
    ])
    assert insertion.insertion_line == 1
    assert insertion.insertion_index == 0
    assert insertion.file_path == "math.js"
    assert all(len(line) <= 79 for line in insertion.content.split("\n"))
    print("\n[PASS] Fallback comment matches")


def test_fallback_for_class_mentions_blueprint():
    box = _structure("box.js", "\n\nclass Box {}\n").classes[0]
    doc = fallback_documentation(box)

    assert "The class 'Box'" in doc.technical
    assert "blueprint" in doc.simple

    insertion = CommentSynthesizer().synthesize(box)
    assert insertion.content.startswith("/** class Box\n")
    assert insertion.insertion_line == 2
    assert all(len(line) <= 79 for line in insertion.content.split("\n"))


def test_hash_style_for_python():
    greet = _structure("greet.py", "import os\n\ndef greet():\n    pass\n").functions[0]
    doc = ElementDocumentation(technical="Prints a greeting.", simple="Says hello.")
    insertion = CommentSynthesizer().synthesize(greet, doc, style=HASH_STYLE)

    assert insertion.content == "\n".join([
        "# function greet",
        "# Technical Explanation:",
        "# Prints a greeting.",
        "#",
        "# Simple Explanation:",
        "# Says hello.",
        "#",
    ])
    assert insertion.insertion_line == 2


def test_block_closer_in_payload_is_neutralized():
    add = _structure("math.js", "function add(a, b) {}\n").functions[0]
    doc = ElementDocumentation(technical="Adds a and b. */ alert(1)", simple="Like counting.")
    content = CommentSynthesizer().synthesize(add, doc).content

    assert content.count("*/") == 1
    assert content.endswith(" */")
    assert "* / alert(1)" in content


def test_long_text_wrapped_with_prefix():
    add = _structure("math.js", "function add(a, b) {}\n").functions[0]
    doc = ElementDocumentation(technical="word " * 60, simple="short")
    content = CommentSynthesizer().synthesize(add, doc).content

    lines = content.split("\n")
    assert all(len(line) <= 79 for line in lines)
    assert sum(1 for line in lines if "word" in line) > 1


def test_synthesis_is_deterministic():
    add = _structure("math.js", "function add(a, b) {}\n").functions[0]
    synthesizer = CommentSynthesizer()
    assert synthesizer.synthesize(add) == synthesizer.synthesize(add)


def test_insertion_line_formula():
    structure = _structure("f.js", "function a() {}\n\n\n\nfunction e() {}\n")
    first, fifth = structure.functions
    assert insertion_line_for(first) == 1
    assert insertion_line_for(fifth) == 4


def test_synthesize_all_uses_payload_and_fallback():
    """Payload entries are looked up by file, name and line; others fall back."""
    text = "function add(a, b) {}\nclass Box {}\n"
    structure = _structure("m.js", text)
    report = DocumentationGapAnalyzer().analyze(structure)
    payload = {
        element_key("m.js", "add", 1): ElementDocumentation(
            technical="Returns the sum of a and b.",
            simple="Like putting two piles together.",
        ),
    }

    insertions = CommentSynthesizer().synthesize_all(report, payload)

    assert [i.element.name for i in insertions] == ["add", "Box"]
    assert "Returns the sum of a and b." in insertions[0].content
    assert "The class 'Box'" in insertions[1].content
    for insertion in insertions:
        assert insertion.file_path == "m.js"
        assert insertion.snapshot_digest == structure.content_digest

    only = CommentSynthesizer().synthesize_all(report, payload, only_functions=True)
    assert [i.element.name for i in only] == ["add"]


def test_synthesize_all_for_unknown_language_is_empty():
    report = DocumentationGapAnalyzer().analyze(_structure("a.txt", "function add() {}"))
    assert CommentSynthesizer().synthesize_all(report) == []
