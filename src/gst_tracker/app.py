"""Interactive CLI application."""
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.prompt import Prompt, IntPrompt, Confirm

from gst_tracker.advice import AdviceError, GeminiAdvisor, generate_advice
from gst_tracker.config import configure_logging, load_settings
from gst_tracker.db import SqliteStore
from gst_tracker.errors import TrackerError
from gst_tracker.importer import import_file
from gst_tracker.models import ExamInput, ExamSection, ExamStatus, ExamType, StatusType
from gst_tracker.progress import ChapterFilter, Task
from gst_tracker.readiness import days_until, get_readiness_color, get_readiness_label, is_on_track
from gst_tracker.tracker import StudyTracker

console = Console()

STATUS_STYLES = {
    StatusType.MASTERED: "bold green",
    StatusType.COMPLETED: "green",
    StatusType.ON_TRACK: "cyan",
    StatusType.BEHIND: "red",
    StatusType.IDLE: "dim",
}


def show_welcome():
    console.print(Panel(
        "[bold]GST Admission Prep[/bold]\n[dim]Chapter progress, revisions and exam scores[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("dashboard", "Readiness + coverage"),
        ("chapters", "Curriculum tracker"),
        ("toggle", "Mark a chapter task done/undone"),
        ("status", "Chapter status + alerts"),
        ("revisions", "Due revisions"),
        ("exams", "Exam log"),
        ("add", "Log an exam"),
        ("edit", "Edit an exam"),
        ("delete", "Delete an exam"),
        ("analysis", "Grades + weak areas"),
        ("import", "Import exams from a file"),
        ("advice", "AI study tips / plan"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def _bar(pct: float, width: int = 20) -> str:
    filled = int(round(pct / 100 * width))
    return f"{'█' * filled}{'░' * (width - filled)}"


def _mark(done) -> str:
    return "[green]✔[/green]" if done else "[dim]·[/dim]"


def choose_subject(tracker: StudyTracker) -> str:
    subjects = list(tracker.catalog)
    return Prompt.ask("Subject", choices=subjects, default=subjects[0])


def choose_chapter(tracker: StudyTracker, subject: str) -> str:
    chapters = tracker.catalog[subject]
    for i, name in enumerate(chapters, 1):
        console.print(f"  [cyan]{i:>2}[/cyan]) {name}")
    index = IntPrompt.ask("Chapter", choices=[str(i) for i in range(1, len(chapters) + 1)])
    return chapters[index - 1]


def choose_exam(tracker: StudyTracker):
    exams = tracker.list_exams()
    if not exams:
        console.print("[yellow]No exams logged yet.[/yellow]")
        return None
    show_exam_table(exams)
    index = IntPrompt.ask("Exam #", choices=[str(i) for i in range(1, len(exams) + 1)])
    return exams[index - 1]


def show_exam_table(exams) -> None:
    table = Table(title="Exam Log")
    table.add_column("#", justify="right")
    table.add_column("Date")
    table.add_column("Subject", style="cyan")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Chapters", justify="right")
    table.add_column("Marks", justify="right")
    table.add_column("Grade")
    for i, e in enumerate(exams, 1):
        marks = f"{e.obtained_marks:g}/{e.total_marks:g}" if e.obtained_marks is not None else ""
        table.add_row(
            str(i), e.date.strftime("%Y-%m-%d"), e.subject, e.exam_type.value,
            e.status.value.title(), str(len(e.topics)), marks, e.grade or "",
        )
    console.print(table)


def prompt_exam_input(tracker: StudyTracker, existing=None) -> ExamInput:
    exam_type = ExamType(Prompt.ask(
        "Exam type", choices=[t.value for t in ExamType],
        default=existing.exam_type.value if existing else ExamType.V_QB.value,
    ))
    status = ExamStatus(Prompt.ask(
        "Status", choices=[s.value for s in ExamStatus],
        default=existing.status.value if existing else ExamStatus.COMPLETED.value,
    ))
    default_date = (existing.date if existing else datetime.now()).strftime("%Y-%m-%d %H:%M")
    when = datetime.fromisoformat(Prompt.ask("Date (YYYY-MM-DD HH:MM)", default=default_date))

    if exam_type.is_mock:
        subject = Prompt.ask("Title", default=existing.subject if existing else "GST Full Mock Test")
        topics = []
    else:
        subject = choose_subject(tracker)
        topics = []
        while True:
            topics.append(choose_chapter(tracker, subject))
            if not Confirm.ask("Add another chapter?", default=False):
                break

    exam_input = ExamInput(subject=subject, exam_type=exam_type, date=when, status=status, topics=topics)
    if status is ExamStatus.COMPLETED and Confirm.ask("Enter marks?", default=True):
        if exam_type.is_mock:
            exam_input.sections = [
                ExamSection(
                    name=section,
                    correct=IntPrompt.ask(f"{section} correct"),
                    wrong=IntPrompt.ask(f"{section} wrong"),
                    total=IntPrompt.ask(f"{section} total marks"),
                )
                for section in tracker.catalog
            ]
        else:
            exam_input.total_marks = IntPrompt.ask("Total marks")
            exam_input.correct_answers = IntPrompt.ask("Correct answers")
            exam_input.wrong_answers = IntPrompt.ask("Wrong answers")
    return exam_input


def cmd_dashboard(tracker: StudyTracker):
    summary = tracker.get_readiness_summary()
    stats = tracker.exam_stats()
    left = days_until(tracker.settings.exam_date, tracker.clock().date())
    track = "[green]On Track[/green]" if is_on_track(summary) else "[red]Behind Schedule[/red]"
    console.print(Panel(
        f"[bold]{left}[/bold] days until the exam ({tracker.settings.exam_date:%B %d, %Y})  {track}",
        title="GST Readiness Dashboard", border_style="blue",
    ))

    for label, pct in (
        ("Completion", summary.completion_pct),
        ("Mastery", summary.mastery_pct),
        ("Overall", summary.combined_pct),
    ):
        color = get_readiness_color(pct)
        console.print(f"  {label:<11} [bold]{pct:5.1f}%[/bold] [{color}]{_bar(pct)}[/{color}]")
    console.print(f"\n  Status: [{get_readiness_color(summary.combined_pct)}]"
                  f"{get_readiness_label(summary.combined_pct)}[/]  |  "
                  f"Chapters completed: [bold]{summary.fully_completed}[/bold]  |  "
                  f"Mastered: [bold]{summary.fully_mastered}[/bold]\n")

    table = Table(title="Exam Coverage")
    table.add_column("Subject / Type", style="cyan")
    table.add_column("Chapters", justify="right")
    table.add_column("Coverage", justify="right")
    for cov in summary.per_subject + summary.per_exam_type:
        table.add_row(cov.name, f"{cov.covered}/{cov.total}", f"{cov.percentage:.0f}%")
    console.print(table)

    console.print(f"\n  Upcoming: [bold]{stats['upcoming']}[/bold]  |  "
                  f"Completed: [bold]{stats['completed']}[/bold]  |  "
                  f"Avg accuracy: [bold]{stats['avg_accuracy']}%[/bold]  |  "
                  f"Grade: [bold]{stats['overall_grade']}[/bold]")

    due = tracker.list_due_revisions()
    if due:
        console.print(f"\n  [yellow]{len(due)} revision(s) due. Use 'revisions' to see them.[/yellow]")


def cmd_chapters(tracker: StudyTracker):
    subject = choose_subject(tracker)
    chapter_filter = Prompt.ask(
        "Filter", choices=[f.value for f in ChapterFilter], default=ChapterFilter.ALL.value,
    )
    rows = tracker.filter_chapters(subject, chapter_filter)
    table = Table(title=f"{subject} Curriculum")
    table.add_column("Chapter", style="cyan")
    for col in ("Class", "Uni QB", "GST QB", "Rev 1", "Rev 2"):
        table.add_column(col, justify="center")
    table.add_column("Status")
    table.add_column("Alerts")
    for chapter, status in rows:
        p = tracker.get_progress(subject, chapter)
        style = STATUS_STYLES[status.status_type]
        table.add_row(
            chapter,
            _mark(p.is_class_done), _mark(p.is_uni_qb_done), _mark(p.is_gst_qb_done),
            _mark(p.first_revision_at), _mark(p.second_revision_at),
            f"[{style}]{status.status_type.value.replace('_', ' ').title()}[/{style}]",
            "\n".join(status.warnings + status.reminders),
        )
    if not rows:
        console.print("[yellow]No chapters match this filter.[/yellow]")
        return
    console.print(table)


def cmd_toggle(tracker: StudyTracker):
    subject = choose_subject(tracker)
    chapter = choose_chapter(tracker, subject)
    task = Prompt.ask("Task", choices=[t.value for t in Task])
    tracker.toggle_chapter_task(subject, chapter, task)
    console.print(f"[green]Updated {task} for {chapter}.[/green]")
    cmd_status(tracker, subject, chapter)


def cmd_status(tracker: StudyTracker, subject: str | None = None, chapter: str | None = None):
    if subject is None:
        subject = choose_subject(tracker)
        chapter = choose_chapter(tracker, subject)
    status = tracker.get_chapter_status(subject, chapter)
    style = STATUS_STYLES[status.status_type]
    lines = [
        f"Status: [{style}]{status.status_type.value.replace('_', ' ').title()}[/{style}]",
        f"Completed: {'yes' if status.is_completed else 'no'}  |  "
        f"Mastered: {'yes' if status.is_mastered else 'no'}",
    ]
    lines += [f"[yellow]! {w}[/yellow]" for w in status.warnings]
    lines += [f"[cyan]• {r}[/cyan]" for r in status.reminders]
    console.print(Panel("\n".join(lines), title=chapter))


def cmd_revisions(tracker: StudyTracker):
    due = tracker.list_due_revisions()
    upcoming = tracker.list_upcoming_revisions()
    if not due and not upcoming:
        console.print("[green]No revisions due. Keep going![/green]")
        return
    table = Table(title="Revisions")
    table.add_column("Due")
    table.add_column("Subject", style="cyan")
    table.add_column("Chapter")
    table.add_column("Pass")
    table.add_column("State")
    for item in due + upcoming:
        if item.overdue:
            state = "[red]Overdue[/red]"
        elif item in due:
            state = "[yellow]Today[/yellow]"
        else:
            state = "[dim]Upcoming[/dim]"
        table.add_row(
            item.due_date.isoformat(), item.subject, item.chapter,
            "1st" if item.kind.value == "FIRST" else "2nd", state,
        )
    console.print(table)


def cmd_exams(tracker: StudyTracker):
    search = Prompt.ask("Search subject", default="")
    status = Prompt.ask("Status", choices=["ALL"] + [s.value for s in ExamStatus], default="ALL")
    exams = tracker.list_exams(search=search, status=None if status == "ALL" else ExamStatus(status))
    if not exams:
        console.print("[yellow]No exams found.[/yellow]")
        return
    show_exam_table(exams)


def cmd_add(tracker: StudyTracker):
    exam = tracker.record_exam(prompt_exam_input(tracker))
    marks = f" - {exam.obtained_marks:g}/{exam.total_marks:g} ({exam.grade})" if exam.grade else ""
    console.print(f"[green]Logged {exam.exam_type.value} for {exam.subject}{marks}[/green]")


def cmd_edit(tracker: StudyTracker):
    exam = choose_exam(tracker)
    if exam is None:
        return
    updated = tracker.update_exam(exam.id, prompt_exam_input(tracker, existing=exam))
    console.print(f"[green]Updated {updated.subject} exam.[/green]")


def cmd_delete(tracker: StudyTracker):
    exam = choose_exam(tracker)
    if exam is None:
        return
    if Confirm.ask(f"Delete {exam.subject} ({exam.exam_type.value})?", default=False):
        tracker.delete_exam(exam.id)
        console.print("[green]Deleted.[/green]")


def cmd_analysis(tracker: StudyTracker):
    result = tracker.analysis()
    if not result["subject_grades"]:
        console.print("[yellow]No scored exams yet.[/yellow]")
        return
    table = Table(title="Subject Grades")
    table.add_column("Subject", style="cyan")
    table.add_column("Accuracy", justify="right")
    table.add_column("Grade")
    table.add_column("Exams", justify="right")
    for row in result["subject_grades"]:
        table.add_row(row["name"], f"{row['accuracy']}%", row["grade"], str(row["total_exams"]))
    console.print(table)

    if result["weak_chapters"]:
        console.print("\n[bold]Weakest Chapters:[/bold]")
        for wc in result["weak_chapters"]:
            console.print(f"  [red]{wc['accuracy']}%[/red] - {wc['name']} ({wc['subject']})")
    if result["weak_subjects"]:
        weakest = result["weak_subjects"][0]
        console.print(f"\n  [yellow]Recommendation: Focus on {weakest['name']}[/yellow]")


def cmd_import(tracker: StudyTracker):
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    result = import_file(tracker, file_path)
    console.print(f"[green]Imported {result['count']} exams from {result['filename']}[/green]")


def cmd_advice(tracker: StudyTracker, advisor=None):
    kind = Prompt.ask("Advice", choices=["tips", "plan"], default="tips")
    try:
        if advisor is None:
            advisor = GeminiAdvisor(tracker.settings.gemini_api_key, model=tracker.settings.model)
        with console.status("Thinking..."):
            text = generate_advice(advisor, tracker.list_exams(), kind, today=tracker.clock().date())
    except AdviceError as e:
        console.print(f"[red]Advice unavailable: {e}[/red]")
        return
    console.print(Panel(text, title="Study Buddy", border_style="magenta"))


COMMANDS = {
    "dashboard": cmd_dashboard,
    "chapters": cmd_chapters,
    "toggle": cmd_toggle,
    "status": cmd_status,
    "revisions": cmd_revisions,
    "exams": cmd_exams,
    "add": cmd_add,
    "edit": cmd_edit,
    "delete": cmd_delete,
    "analysis": cmd_analysis,
    "import": cmd_import,
    "advice": cmd_advice,
}


def run_command(tracker: StudyTracker, choice: str) -> bool:
    """Dispatch one menu choice. Returns False when the user asked to quit."""
    if choice in ("quit", "exit", "q"):
        return False
    handler = COMMANDS.get(choice)
    if handler is None:
        console.print("[red]Unknown command. Try again.[/red]")
        return True
    try:
        handler(tracker)
    except TrackerError as e:
        console.print(f"[red]Error: {e}[/red]")
    except ValueError as e:
        console.print(f"[red]Invalid input: {e}[/red]")
    return True


def main():
    settings = load_settings()
    configure_logging(settings.log_level)
    store = SqliteStore(settings.db_path)
    tracker = StudyTracker.open(store, settings.user_key, settings=settings)

    show_welcome()
    try:
        while True:
            show_menu()
            choice = Prompt.ask("\n[bold]>[/bold]", default="dashboard").strip().lower()
            try:
                if not run_command(tracker, choice):
                    console.print("[dim]Good luck on your exam![/dim]")
                    break
            except KeyboardInterrupt:
                console.print("\n[dim]Use 'quit' to exit.[/dim]")
    finally:
        tracker.close()


if __name__ == "__main__":
    main()
