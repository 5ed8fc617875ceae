"""Tests for the batch pipeline."""

import pytest

from llm_doc_commenter.src.exceptions import RestoreFailure
from llm_doc_commenter.src.mutation import MutationEngine
from llm_doc_commenter.src.pipeline import CommentPipeline, FileStatus
from llm_doc_commenter.utils.response_schemas import ElementDocumentation, element_key

ADD_JS = "function add(a, b) {\n  return a + b;\n}\n"
DOCUMENTED_JS = (
    "/**\n"
    " * Technical Explanation: returns one.\n"
    " * Simple Explanation: always says one.\n"
    " */\n"
    "function one() {\n"
    "  return 1;\n"
    "}\n"
)


def _project(tmp_path):
    math = tmp_path / "math.js"
    math.write_text(ADD_JS, encoding="utf-8")
    ok = tmp_path / "ok.js"
    ok.write_text(DOCUMENTED_JS, encoding="utf-8")
    bad = tmp_path / "bad.js"
    bad.write_bytes("function größe() {}".encode("latin-1"))
    return math, ok, bad


def test_run_records_every_file(tmp_path):
    """One file updated, one already documented, one unreadable."""
    print("=" * 70)
    print("TEST: Batch run")
    print("=" * 70)

    math, ok, bad = _project(tmp_path)
    batch = CommentPipeline().run([math, ok, bad])

    statuses = {r.file_path: r.status for r in batch.files}
    print(f"\nStatuses: {statuses}")
    assert statuses == {
        str(math): FileStatus.UPDATED,
        str(ok): FileStatus.UNCHANGED,
        str(bad): FileStatus.READ_ERROR,
    }
    assert batch.comments_added == 1
    assert [r.file_path for r in batch.errors] == [str(bad)]
    assert not batch.critical
    assert math.read_text(encoding="utf-8").startswith("/** function add\n")
    assert ok.read_text(encoding="utf-8") == DOCUMENTED_JS
    print("\n[PASS] Batch recorded every file")


def test_second_run_is_a_no_op(tmp_path):
    math, ok, _ = _project(tmp_path)
    pipeline = CommentPipeline()
    pipeline.run([math, ok])
    after_first = math.read_bytes()

    batch = pipeline.run([math, ok])

    assert math.read_bytes() == after_first
    assert batch.comments_added == 0
    assert all(r.status == FileStatus.UNCHANGED for r in batch.files)


def test_dry_run_previews_without_writing(tmp_path):
    math, _, _ = _project(tmp_path)
    output = []

    batch = CommentPipeline(dry_run=True, echo=output.append).run([math])

    assert batch.files[0].status == FileStatus.PREVIEWED
    assert batch.comments_added == 0
    assert math.read_text(encoding="utf-8") == ADD_JS
    assert any(line.startswith(">>> ") for line in output)
    assert sorted(p.name for p in tmp_path.iterdir()) == ["bad.js", "math.js", "ok.js"]


def test_source_called_once_with_pending_reports(tmp_path):
    math, ok, _ = _project(tmp_path)
    calls = []

    def source(reports):
        calls.append([r.file_path for r in reports])
        return {
            element_key(str(math), "add", 1): ElementDocumentation(
                technical="Returns the sum of a and b.",
                simple="Like putting two piles of apples together.",
            )
        }

    CommentPipeline(source=source).run([math, ok])

    assert calls == [[str(math)]]
    text = math.read_text(encoding="utf-8")
    assert "Returns the sum of a and b." in text
    assert "Like putting two piles of apples together." in text


def test_source_not_called_without_gaps(tmp_path):
    _, ok, _ = _project(tmp_path)
    calls = []

    def source(reports):
        calls.append(reports)
        return None

    batch = CommentPipeline(source=source).run([ok])

    assert calls == []
    assert batch.files[0].status == FileStatus.UNCHANGED


def test_file_changed_during_run_is_stale(tmp_path):
    """A file edited after analysis is not written."""
    math, _, _ = _project(tmp_path)

    def editing_source(reports):
        math.write_text("// edited\n" + ADD_JS, encoding="utf-8")
        return None

    batch = CommentPipeline(source=editing_source).run([math])

    assert batch.files[0].status == FileStatus.STALE
    assert math.read_text(encoding="utf-8") == "// edited\n" + ADD_JS


def test_only_functions_skips_classes(tmp_path):
    path = tmp_path / "box.js"
    path.write_text("class Box {}\n", encoding="utf-8")

    result = CommentPipeline(only_functions=True).process_file(path)

    assert result.status == FileStatus.UNCHANGED
    assert result.insertions == []
    assert path.read_text(encoding="utf-8") == "class Box {}\n"


def test_restore_failure_is_critical_and_batch_continues(tmp_path, monkeypatch):
    math, _, _ = _project(tmp_path)
    other = tmp_path / "other.js"
    other.write_text("function other() {}\n", encoding="utf-8")
    engine = MutationEngine()
    original_apply = engine.apply

    def apply(file_path, insertions):
        if str(file_path) == str(math):
            raise RestoreFailure("CRITICAL: restore failed", file_path, str(math) + ".bak")
        return original_apply(file_path, insertions)

    monkeypatch.setattr(engine, "apply", apply)

    batch = CommentPipeline(engine=engine).run([math, other])

    statuses = [r.status for r in batch.files]
    assert statuses == [FileStatus.RESTORE_FAILED, FileStatus.UPDATED]
    assert batch.critical
    assert "CRITICAL" in batch.files[0].error


def test_plain_doc_block_stays_intact(tmp_path):
    sum_js = tmp_path / "sum.js"
    original = "/**\n * Sums two numbers.\n */\nfunction sum(a, b) {\n  return a + b;\n}\n"
    sum_js.write_text(original, encoding="utf-8")
    pipeline = CommentPipeline()

    first = pipeline.run([sum_js])
    text = sum_js.read_text(encoding="utf-8")
    second = pipeline.run([sum_js])

    assert first.comments_added == 1
    assert text.endswith(" */\n" + original)
    assert second.comments_added == 0
    assert sum_js.read_text(encoding="utf-8") == text


@pytest.mark.parametrize("window_lines", [0, -1])
def test_window_of_zero_lines_rejected(window_lines):
    with pytest.raises(ValueError):
        CommentPipeline(window_lines=window_lines)


def test_single_line_window_is_idempotent(tmp_path):
    """With a one-line window the guard still finds the block it wrote."""
    math = tmp_path / "math.js"
    math.write_text("const x = 1;\n\n" + ADD_JS, encoding="utf-8")
    pipeline = CommentPipeline(window_lines=1)

    pipeline.run([math])
    after_first = math.read_bytes()
    batch = pipeline.run([math])

    assert math.read_bytes() == after_first
    assert batch.comments_added == 0
    assert after_first.decode("utf-8").startswith("const x = 1;\n/** function add\n")
