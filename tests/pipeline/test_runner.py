"""Tests for multi-document chunk runs."""

import json

import fitz  # PyMuPDF
import pytest

from localplan.core.artifacts import read_chunks
from localplan.core.config import Settings
from localplan.pipeline.runner import (
    DocumentJob,
    DuplicateSourceError,
    chunk_document_file,
    chunk_documents,
    run_chunk,
    summarize,
)

pytestmark = pytest.mark.unit

BODY = "Proposals for tall buildings will be assessed against the criteria below."


def _write_pages(path, pages):
    path.write_text(
        json.dumps([{"page_number": n, "lines": lines} for n, lines in pages.items()]),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def plan_files(tmp_path):
    """Three pre-extracted plans with 1, 2 and 3 chunks."""
    files = []
    for count in (1, 2, 3):
        pages = {n: [f"Policy T{n}:", BODY] for n in range(1, count + 1)}
        files.append(_write_pages(tmp_path / f"plan_{count}.json", pages))
    return files


class TestChunkDocumentFile:
    def test_pages_json(self, plan_files, settings):
        result = chunk_document_file(DocumentJob(plan_files[1], "Lewisham", pages_json=True), settings)

        assert result.ok
        assert result.source == "plan_2.json"
        assert [c.section for c in result.chunks] == ["Policy T1:", "Policy T2:"]
        assert all(c.council == "Lewisham" for c in result.chunks)

    def test_unreadable_document_recorded(self, tmp_path, settings):
        broken = tmp_path / "broken.json"
        broken.write_text("{not json")

        result = chunk_document_file(DocumentJob(broken, "Lewisham", pages_json=True), settings)

        assert not result.ok
        assert result.chunks == []
        assert "broken.json" in result.error

    def test_invalid_page_number_rejected(self, tmp_path, settings):
        bad = _write_pages(tmp_path / "bad.json", {0: [BODY]})

        result = chunk_document_file(DocumentJob(bad, "Lewisham", pages_json=True), settings)

        assert not result.ok


class TestChunkDocuments:
    @pytest.mark.parametrize("workers", [1, 3])
    def test_results_in_job_order(self, plan_files, settings, workers):
        jobs = [DocumentJob(p, "Hackney", pages_json=True) for p in reversed(plan_files)]

        results = chunk_documents(jobs, workers=workers, settings=settings)

        assert [r.source for r in results] == ["plan_3.json", "plan_2.json", "plan_1.json"]
        assert [len(r.chunks) for r in results] == [3, 2, 1]
        for r in results:
            assert [c.chunk_index for c in r.chunks] == list(range(len(r.chunks)))

    def test_failure_does_not_stop_others(self, plan_files, tmp_path, settings):
        broken = tmp_path / "broken.json"
        broken.write_text("[]]")
        jobs = [DocumentJob(plan_files[0], "Hackney", True), DocumentJob(broken, "Hackney", True)]

        results = chunk_documents(jobs, workers=2, settings=settings)

        assert [r.ok for r in results] == [True, False]

    def test_same_document_twice(self, plan_files, settings):
        jobs = [DocumentJob(plan_files[2], "Hackney", True)] * 2

        first, second = chunk_documents(jobs, workers=2, settings=settings)

        assert [c.text for c in first.chunks] == [c.text for c in second.chunks]
        assert not {c.chunk_id for c in first.chunks} & {c.chunk_id for c in second.chunks}


class TestSummarize:
    def test_counts_and_failures(self, plan_files, tmp_path, settings):
        broken = tmp_path / "broken.json"
        broken.write_text("nope")
        jobs = [DocumentJob(p, "Hackney", True) for p in plan_files] + [DocumentJob(broken, "Hackney", True)]

        summary = summarize(chunk_documents(jobs, workers=2, settings=settings))

        assert summary["docCount"] == 4
        assert summary["chunkCount"] == 6
        assert summary["sectionTypes"] == {"policy": 6}
        assert summary["failures"][0]["source"] == "broken.json"
        assert summary["charStats"]["min"] == summary["charStats"]["max"] == len(BODY)

    def test_no_chunks(self):
        summary = summarize([])

        assert summary["chunkCount"] == 0
        assert "charStats" not in summary


class TestRunChunk:
    def test_writes_artifacts(self, plan_files, tmp_path, settings):
        out = tmp_path / "out"
        jobs = [DocumentJob(p, "Southwark", True) for p in plan_files]

        summary = run_chunk(jobs, out_dir=out, run_id="test-run", workers=2, settings=settings)

        assert summary["run_id"] == "test-run"
        chunks = read_chunks(out / "chunks.ndjson")
        assert len(chunks) == 6
        assert [c.source for c in chunks] == ["plan_1.json"] + ["plan_2.json"] * 2 + ["plan_3.json"] * 3

        written = json.loads((out / "chunk_summary.json").read_text())
        assert written["chunkCount"] == 6
        assert written["artifacts"]["chunks_file"] == str(out / "chunks.ndjson")

    def test_default_location_under_workdir(self, plan_files, tmp_path):
        settings = Settings(_env_file=None, LOCALPLAN_WORKDIR=str(tmp_path / "var"))

        summary = run_chunk([DocumentJob(plan_files[0], "Southwark", True)], run_id="r1", settings=settings)

        expected = tmp_path / "var" / "runs" / "r1" / "chunk" / "chunks.ndjson"
        assert summary["artifacts"]["chunks_file"] == str(expected)
        assert expected.exists()

    def test_duplicate_source_names_rejected(self, tmp_path, settings):
        for folder in ("north", "south"):
            (tmp_path / folder).mkdir()
            _write_pages(tmp_path / folder / "plan.json", {1: ["Policy T1:", BODY]})
        jobs = [DocumentJob(tmp_path / folder / "plan.json", "Southwark", True) for folder in ("north", "south")]

        with pytest.raises(DuplicateSourceError, match="plan.json"):
            run_chunk(jobs, out_dir=tmp_path / "out", settings=settings)

        assert not (tmp_path / "out").exists()


@pytest.mark.pdf
class TestUnreadablePdf:
    def test_encrypted_pdf_recorded_and_run_continues(self, plan_files, tmp_path, settings):
        locked = tmp_path / "locked.pdf"
        doc = fitz.open()
        doc.new_page().insert_text((72, 72), BODY, fontsize=10)
        doc.save(str(locked), encryption=fitz.PDF_ENCRYPT_AES_256, owner_pw="owner", user_pw="reader")
        doc.close()
        out = tmp_path / "out"
        jobs = [DocumentJob(locked, "Southwark"), DocumentJob(plan_files[0], "Southwark", True)]

        summary = run_chunk(jobs, out_dir=out, run_id="locked-run", workers=2, settings=settings)

        assert [f["source"] for f in summary["failures"]] == ["locked.pdf"]
        assert summary["chunkCount"] == 1
        assert len(read_chunks(out / "chunks.ndjson")) == 1
