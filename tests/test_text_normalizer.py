"""Test 79-character wrapping and comment decoration stripping."""

from llm_doc_commenter.utils.logger_setup import LoggerManager, get_logger
from llm_doc_commenter.utils.text_normalizer import (
    strip_comment_decoration,
    wrap_and_normalize,
    wrap_line,
)


def test_wrap_line_keeps_indentation():
    """Test wrap_line with an indented line longer than the limit."""
    print("=" * 70)
    print("TEST: wrap_line - indentation preserved")
    print("=" * 70)

    line = "    " + "The function coordinates several components and returns the combined result to the caller."
    wrapped = wrap_line(line, max_length=40)

    print("\nWrapped:\n" + "\n".join(wrapped))
    assert len(wrapped) > 1
    for part in wrapped:
        assert part.startswith("    "), f"Indentation lost: '{part}'"
        assert len(part) <= 40, f"Line exceeds 40 chars: '{part}' ({len(part)} chars)"
    print("\n[PASS] Indentation preserved on every wrapped line")


def test_wrap_and_normalize_dedents():
    text = "        first line\n          nested line\n\n        last line"
    assert wrap_and_normalize(text) == "first line\n  nested line\n\nlast line"


def test_long_word_is_kept_whole():
    word = "x" * 100
    assert wrap_and_normalize(word) == word
    assert wrap_and_normalize("") == ""


def test_every_line_within_limit():
    """Test wrap_and_normalize with a long multi-sentence paragraph."""
    long_text = (
        "This function reads the configuration from disk, merges it with the "
        "environment and validates every section before returning it to the "
        "caller, which keeps startup failures early and readable."
    )
    wrapped = wrap_and_normalize(long_text)

    assert "\n" in wrapped, "Text should be wrapped"
    for line in wrapped.split("\n"):
        assert len(line) <= 79, f"Line exceeds 79 chars: '{line}' ({len(line)} chars)"


def test_strip_comment_decoration():
    assert strip_comment_decoration("/**\n * Adds numbers.\n * Twice.\n */") == "Adds numbers.\nTwice."
    assert strip_comment_decoration("/* inline */") == "inline"
    assert strip_comment_decoration("# hash\n# style") == "hash\nstyle"
    assert strip_comment_decoration("plain text") == "plain text"


def test_logger_hierarchy(tmp_path):
    logger = get_logger("llm_doc_commenter.src.extractor")
    assert logger.name == "llm_doc_commenter.src.extractor"
    assert get_logger("other").name == "llm_doc_commenter.other"

    log_file = tmp_path / "run.log"
    LoggerManager.setup_logging(log_file=str(log_file), level="DEBUG")
    logger.debug("extraction finished")
    LoggerManager.reset()

    assert "extraction finished" in log_file.read_text(encoding="utf-8")
