import threading

import pytest

from jobfit.services.evaluator import FitEvaluator
from jobfit.services.ranking import BatchRanker, BatchState, select_cohort

from conftest import make_assessment, make_candidate


@pytest.fixture
def ranker():
    return BatchRanker(FitEvaluator(), max_workers=4)


def latest(assessments):
    by_candidate = {}
    for a in sorted(assessments, key=lambda a: a.created_at):
        by_candidate[a.candidate_id] = a
    return by_candidate


class TestSelectCohort:
    """Test cases for cohort collection"""

    def test_defaults_to_job_position(self, backend_job, cohort):
        """Test that only candidates for the job's position are collected"""
        candidates, _ = cohort
        ids = [c.id for c in select_cohort(backend_job, candidates)]
        assert ids == ["c-alice", "c-bob", "c-carol", "c-dan"]

    def test_all_collects_every_position(self, backend_job, cohort):
        """Test the cross-position run"""
        candidates, _ = cohort
        assert len(select_cohort(backend_job, candidates, "all")) == 5

    def test_explicit_position_filter(self, backend_job, cohort):
        """Test filtering on another position"""
        candidates, _ = cohort
        assert [c.id for c in select_cohort(backend_job, candidates, "data-scientist")] == ["c-erin"]

    def test_duplicate_candidates_collected_once(self, backend_job):
        """Test that a repeated candidate id is only scored once"""
        dupes = [make_candidate("c1"), make_candidate("c1"), make_candidate("c2")]
        assert [c.id for c in select_cohort(backend_job, dupes)] == ["c1", "c2"]


class TestBatchRanker:
    """Test cases for the collect/score/sort/assign run"""

    def test_ranks_by_fit_score(self, ranker, backend_job, cohort):
        """Test ordering, contiguous rankings and the skip record"""
        candidates, assessments = cohort
        result = ranker.rank(backend_job, candidates, latest(assessments))

        assert [e.candidate_id for e in result.evaluations] == ["c-alice", "c-bob", "c-carol"]
        assert [e.fit_score for e in result.evaluations] == [93, 69, 56]
        assert [e.ranking for e in result.evaluations] == [1, 2, 3]
        assert result.skipped_count == 1
        assert result.skipped[0].candidate_id == "c-dan"
        assert result.state == BatchState.DONE

    def test_rank_one_has_maximum_score(self, ranker, backend_job, cohort):
        """Test that rank 1 holds the highest fit score"""
        candidates, assessments = cohort
        result = ranker.rank(backend_job, candidates, latest(assessments), "all")
        top = result.evaluations[0]
        assert top.ranking == 1
        assert top.fit_score == max(e.fit_score for e in result.evaluations)

    def test_ties_broken_by_experience_then_id(self, ranker, backend_job):
        """Test the full tie-break chain"""
        candidates = [make_candidate(cid) for cid in ("c-z", "c-y", "c-x")]
        assessments = {
            # c-z: 0.5*66 + 0.3*60 + 0.2*90 = 69
            "c-z": make_assessment("c-z", skills="python, sql", experience=60, education=90),
            # c-y and c-x: 0.5*66 + 0.3*80 + 0.2*60 = 69
            "c-y": make_assessment("c-y", skills="python, sql", experience=80, education=60),
            "c-x": make_assessment("c-x", skills="python, sql", experience=80, education=60),
        }
        result = ranker.rank(backend_job, candidates, assessments)
        assert [e.fit_score for e in result.evaluations] == [69, 69, 69]
        assert [e.candidate_id for e in result.evaluations] == ["c-x", "c-y", "c-z"]

    def test_rankings_unique_and_contiguous(self, ranker, backend_job):
        """Test a larger cohort with many identical scores"""
        candidates = [make_candidate(f"c-{i:02d}") for i in range(25)]
        assessments = {c.id: make_assessment(c.id, experience=50 + i % 3) for i, c in enumerate(candidates)}
        result = ranker.rank(backend_job, candidates, assessments)
        assert sorted(e.ranking for e in result.evaluations) == list(range(1, 26))

    def test_repeat_runs_are_identical(self, ranker, backend_job, cohort):
        """Test idempotence across runs on unchanged input"""
        candidates, assessments = cohort
        first = ranker.rank(backend_job, candidates, latest(assessments))
        second = ranker.rank(backend_job, candidates, latest(assessments))
        strip = lambda r: [e.model_dump(exclude={"evaluated_at"}) for e in r.evaluations]
        assert strip(first) == strip(second)

    def test_empty_cohort(self, ranker, backend_job):
        """Test that no candidates produces an empty, finished batch"""
        result = ranker.rank(backend_job, [], {})
        assert result.evaluations == []
        assert result.skipped_count == 0
        assert result.state == BatchState.DONE

    def test_scoring_runs_on_worker_threads(self, backend_job, cohort):
        """Test that candidate scoring happens off the calling thread"""
        seen_threads = set()

        class RecordingEvaluator(FitEvaluator):
            def evaluate(self, candidate, assessment, job):
                seen_threads.add(threading.current_thread().name)
                return super().evaluate(candidate, assessment, job)

        candidates, assessments = cohort
        BatchRanker(RecordingEvaluator(), max_workers=2).rank(backend_job, candidates, latest(assessments))
        assert seen_threads
        assert all(name.startswith("jobfit-score") for name in seen_threads)
