"""Tests for the recruiter views of the command-line interface."""
import sys

import pytest

import interprep.__main__ as cli
from interprep.infrastructure.data import InMemoryStorage, InterviewRepository, JsonFileStorage
from interprep.interview.models import (
    Assessment, AssessmentConfig, AssessmentResult, InterviewConfig,
    InterviewSession, InterviewSummary, InterviewType,
)

from conftest import entry


def make_assessment(assessment_id, created_by="rita", job_role="Data Analyst"):
    return Assessment(
        id=assessment_id,
        job_role=job_role,
        created_by=created_by,
        created_at="2024-05-01T00:00:00+00:00",
        config=AssessmentConfig(type=InterviewType.TECHNICAL),
        questions=("Explain a JOIN?", "Describe a pivot table?"),
    )


def make_result(result_id, assessment_id, name, score, email=""):
    session = InterviewSession(
        date="2024-05-02T10:00:00+00:00",
        type="Technical - Data Analyst",
        duration=2,
        average_score=score,
        config=InterviewConfig(type=InterviewType.TECHNICAL, role="Data Analyst"),
        transcript=(entry(score=score, duration=40, question="Explain a JOIN?", answer=f"{name}'s answer"),),
        summary=InterviewSummary(f"Report for {name}.", ("Be concise",)),
    )
    return AssessmentResult(
        id=result_id,
        assessment_id=assessment_id,
        candidate_name=name,
        candidate_email=email,
        completed_at=f"2024-05-0{result_id[-1]}T10:00:00+00:00",
        session=session,
    )


@pytest.fixture
def repository():
    repository = InterviewRepository(InMemoryStorage())
    repository.save_assessment(make_assessment("a1"))
    repository.save_assessment(make_assessment("a2", created_by="sam", job_role="Support Engineer"))
    repository.save_result(make_result("r1", "a1", "Jane Doe", 82, email="jane@example.com"))
    repository.save_result(make_result("r2", "a1", "Sam Lee", 64))
    return repository


class TestAssessmentList:

    def test_lists_assessments_with_submission_counts(self, repository, capsys):
        cli._print_assessments(repository)
        out = capsys.readouterr().out

        assert "2 assessments" in out
        assert "a1" in out and "2 submissions" in out
        assert "a2" in out and "0 submissions" in out

    def test_filters_by_recruiter(self, repository, capsys):
        cli._print_assessments(repository, "sam")
        out = capsys.readouterr().out

        assert "1 assessments by sam" in out
        assert "Support Engineer" in out
        assert "Data Analyst" not in out

    def test_empty(self, capsys):
        cli._print_assessments(InterviewRepository(InMemoryStorage()), "nobody")
        assert "No assessments yet for nobody" in capsys.readouterr().out


class TestResults:

    def test_prints_each_candidate_report(self, repository, capsys):
        cli._print_results(repository, "a1")
        out = capsys.readouterr().out

        assert "Data Analyst: 2 submissions" in out
        assert " 82%  Jane Doe <jane@example.com>" in out
        assert " 64%  Sam Lee" in out
        assert "Report for Jane Doe." in out
        assert "Sam Lee's answer" in out
        # newest submission first
        assert out.index("👤 Sam Lee") < out.index("👤 Jane Doe")

    def test_unknown_assessment_exits(self, repository, capsys):
        with pytest.raises(SystemExit):
            cli._print_results(repository, "missing")
        assert "No assessment with id missing" in capsys.readouterr().out


class TestMain:

    @pytest.fixture
    def data_dir(self, tmp_path, monkeypatch):
        for name in ("GOOGLE_CLOUD_PROJECT", "GOOGLE_APPLICATION_CREDENTIALS", "INTERPREP_SPEECH_MODE"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("INTERPREP_DATA_DIR", str(tmp_path))
        monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)
        repository = InterviewRepository(JsonFileStorage(str(tmp_path)))
        repository.save_assessment(make_assessment("a1"))
        repository.save_result(make_result("r1", "a1", "Jane Doe", 82))
        return tmp_path

    def test_assessments_need_no_cloud_project(self, data_dir, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["interprep", "--assessments", "--recruiter=rita"])
        cli.main()
        assert "1 assessments by rita" in capsys.readouterr().out

    def test_results_view(self, data_dir, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["interprep", "--results=a1"])
        cli.main()
        out = capsys.readouterr().out
        assert "1 submissions" in out
        assert "Report for Jane Doe." in out

    def test_results_rejects_paths(self, data_dir, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["interprep", "--results=../results/r1"])
        with pytest.raises(SystemExit):
            cli.main()
        assert "No assessment with id" in capsys.readouterr().out
