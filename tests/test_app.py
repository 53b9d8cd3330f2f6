# tests/test_app.py
from datetime import datetime
from unittest.mock import patch

from rich.console import Console

from gst_tracker.app import (
    cmd_add, cmd_advice, cmd_analysis, cmd_chapters, cmd_dashboard, cmd_delete, cmd_import,
    cmd_revisions, run_command,
)
from gst_tracker.models import ExamInput, ExamStatus, ExamType

VECTOR = "Physics 1st: Vector"


class FakeAdvisor:
    def generate(self, prompt):
        return "Focus on Vector this week."


def log_vector_quiz(tracker):
    return tracker.record_exam(ExamInput(
        subject="Physics", exam_type=ExamType.V_QB, date=datetime(2026, 1, 20),
        status=ExamStatus.COMPLETED, topics=[VECTOR],
        total_marks=100, correct_answers=88, wrong_answers=12,
    ))


def test_quit_and_unknown_commands(tracker, capsys):
    assert run_command(tracker, "quit") is False
    assert run_command(tracker, "q") is False
    assert run_command(tracker, "fly") is True
    assert "Unknown command" in capsys.readouterr().out


@patch("gst_tracker.app.IntPrompt.ask", return_value=2)
@patch("gst_tracker.app.Prompt.ask", side_effect=["Physics", "class"])
def test_toggle_marks_task(mock_ask, mock_int, tracker):
    assert run_command(tracker, "toggle") is True
    assert tracker.get_progress("Physics", VECTOR).is_class_done


@patch("gst_tracker.app.IntPrompt.ask", return_value=2)
@patch("gst_tracker.app.Prompt.ask", side_effect=["Physics", "rev1"])
def test_toggle_precondition_is_reported(mock_ask, mock_int, tracker, capsys):
    assert run_command(tracker, "toggle") is True
    assert "Error:" in capsys.readouterr().out
    assert tracker.get_progress("Physics", VECTOR).first_revision_at is None


@patch("gst_tracker.app.Confirm.ask", side_effect=[False, True])
@patch("gst_tracker.app.IntPrompt.ask", side_effect=[2, 100, 88, 12])
@patch("gst_tracker.app.Prompt.ask", side_effect=["V.QB", "COMPLETED", "2026-01-10 10:00", "Physics"])
def test_add_exam(mock_ask, mock_int, mock_confirm, tracker, capsys):
    cmd_add(tracker)
    exams = tracker.list_exams()
    assert len(exams) == 1
    assert exams[0].topics == [VECTOR]
    assert exams[0].obtained_marks == 85
    assert "Logged V.QB for Physics" in capsys.readouterr().out


@patch("gst_tracker.app.Prompt.ask", side_effect=["V.QB", "COMPLETED", "yesterday"])
def test_add_exam_bad_date_is_reported(mock_ask, tracker, capsys):
    assert run_command(tracker, "add") is True
    assert "Invalid input" in capsys.readouterr().out
    assert tracker.list_exams() == []


@patch("gst_tracker.app.Confirm.ask", return_value=True)
@patch("gst_tracker.app.IntPrompt.ask", return_value=1)
def test_delete_exam(mock_int, mock_confirm, tracker):
    log_vector_quiz(tracker)
    cmd_delete(tracker)
    assert tracker.list_exams() == []


def test_delete_without_exams(tracker, capsys):
    cmd_delete(tracker)
    assert "No exams logged yet" in capsys.readouterr().out


def test_dashboard_renders(tracker, capsys):
    log_vector_quiz(tracker)
    cmd_dashboard(tracker)
    out = capsys.readouterr().out
    assert "GST Readiness Dashboard" in out
    assert "Behind Schedule" in out


@patch("gst_tracker.app.console", Console(width=240))
@patch("gst_tracker.app.Prompt.ask", side_effect=["Physics", "ALL"])
def test_chapters_table(mock_ask, tracker, capsys):
    tracker.toggle_chapter_task("Physics", VECTOR, "class")
    cmd_chapters(tracker)
    out = capsys.readouterr().out
    assert "Physics Curriculum" in out
    assert "Missing University QB solving" in out


def test_revisions_empty(tracker, capsys):
    cmd_revisions(tracker)
    assert "No revisions due" in capsys.readouterr().out


def test_analysis(tracker, capsys):
    cmd_analysis(tracker)
    assert "No scored exams yet" in capsys.readouterr().out
    log_vector_quiz(tracker)
    cmd_analysis(tracker)
    assert "Focus on Physics" in capsys.readouterr().out


@patch("gst_tracker.app.Prompt.ask", return_value="/nonexistent/history.json")
def test_import_missing_file(mock_ask, tracker, capsys):
    cmd_import(tracker)
    assert "File not found" in capsys.readouterr().out


@patch("gst_tracker.app.Prompt.ask", return_value="tips")
def test_advice_without_exams(mock_ask, tracker, capsys):
    cmd_advice(tracker, advisor=FakeAdvisor())
    assert "Advice unavailable" in capsys.readouterr().out


@patch("gst_tracker.app.Prompt.ask", return_value="plan")
def test_advice_with_fake_advisor(mock_ask, tracker, capsys):
    log_vector_quiz(tracker)
    cmd_advice(tracker, advisor=FakeAdvisor())
    assert "Focus on Vector this week." in capsys.readouterr().out
