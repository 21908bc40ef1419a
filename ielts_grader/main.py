"""
IELTS Grader CLI Application.

Command-line interface for parsing authored test content, producing the
student view, and grading submissions into band scores.
"""

import json
import logging
from pathlib import Path
from typing import Annotated, Any, NoReturn, Optional

import typer
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ielts_grader.config import get_settings
from ielts_grader.content import ContentParseError, ContentParser, to_student_view
from ielts_grader.extractors import ExtractionError, extract_document
from ielts_grader.grading import GradingEngine, band_for
from ielts_grader.models import GradingResult, ParsedContent, Question, Section

app = typer.Typer(
    name="ielts-grader",
    help="Parse IELTS test content with inline questions and grade submissions",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)

_QUESTIONS = TypeAdapter(list[Question])


def _configure_logging(verbose: bool = False) -> None:
    """Send log records to stderr through rich."""
    level = "DEBUG" if verbose else get_settings().log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _fail(label: str, error: Exception) -> NoReturn:
    console.print(f"[red]{label}:[/red] {escape(str(error))}")
    raise typer.Exit(1)


def _parse_file(file: Path, start: int | None, section: Section) -> ParsedContent:
    document = extract_document(file)
    return ContentParser().parse(document.content, start=start, section=section)


def _write_json(path: Path, payload: str) -> Path:
    if not path.is_absolute() and path.parent == Path("."):
        path = get_settings().ensure_output_directory() / path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(payload, encoding="utf-8")
    return path


def _load_answer_key(key_file: Path, section: Section) -> list[Question]:
    """
    Load the questions to grade against.

    A .json file holds either a list of questions, saved parser output, or
    a content tree; any other file is authored content and is parsed.
    """
    if key_file.suffix.lower() != ".json":
        return list(_parse_file(key_file, None, section).questions)

    raw = json.loads(key_file.read_text(encoding="utf-8"))
    if isinstance(raw, list):
        return _QUESTIONS.validate_python(raw)
    if isinstance(raw, dict) and "questions" in raw:
        return _QUESTIONS.validate_python(raw["questions"])
    return list(ContentParser().parse(raw, section=section).questions)


def _load_submission(file: Path) -> dict[str, Any]:
    raw = json.loads(file.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("Submission must be a JSON object of answers")
    return {str(key): value for key, value in raw.items()}


@app.command()
def parse(
    file: Annotated[Path, typer.Argument(help="Authored content (.txt, .md, .docx, .json)")],
    start: Annotated[
        Optional[int],
        typer.Option("--start", "-s", min=1, help="First question number"),
    ] = None,
    section: Annotated[
        Section,
        typer.Option("--section", help="Section of the questions"),
    ] = Section.READING,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the parsed content as JSON (bare names go to the output directory)"),
    ] = None,
) -> None:
    """
    Parse authored content into numbered questions.

    Shows the question table; the placeholder content and questions can be
    saved as JSON and later used as the answer key for grading.
    """
    _configure_logging()
    try:
        parsed = _parse_file(file, start, section)
    except ExtractionError as e:
        _fail("Extraction Error", e)
    except ContentParseError as e:
        _fail("Parse Error", e)

    table = Table(title=f"Questions ({parsed.question_count})")
    table.add_column("No.", justify="right", style="cyan")
    table.add_column("Id")
    table.add_column("Type")
    table.add_column("Prompt")
    table.add_column("Answer")

    for question in parsed.questions:
        label = str(question.number)
        if question.last_number > question.number:
            label = f"{question.number}-{question.last_number}"
        table.add_row(
            label,
            question.id,
            question.type.value,
            question.prompt[:40],
            json.dumps(question.answer_spec, ensure_ascii=False)[:50],
        )

    console.print(table)
    console.print(f"\n[bold]Next question number:[/bold] {parsed.next_number}")

    if output:
        saved = _write_json(output, parsed.model_dump_json(indent=2))
        console.print(f"\n[green]Parsed content saved to:[/green] {saved}")


@app.command("student-view")
def student_view(
    file: Annotated[Path, typer.Argument(help="Authored content (.txt, .md, .docx, .json)")],
    start: Annotated[
        Optional[int],
        typer.Option("--start", "-s", min=1, help="First question number"),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the student view as JSON"),
    ] = None,
) -> None:
    """
    Render authored content as test-takers see it, with answers removed.
    """
    _configure_logging()
    try:
        parsed = _parse_file(file, start, Section.READING)
    except ExtractionError as e:
        _fail("Extraction Error", e)
    except ContentParseError as e:
        _fail("Parse Error", e)

    view = to_student_view(parsed.content, parsed.questions)

    if isinstance(view.content, str):
        console.print(Panel(Text(view.content), title="Student View"))
    else:
        console.print_json(view.content.model_dump_json())

    if output:
        saved = _write_json(output, view.model_dump_json(indent=2))
        console.print(f"\n[green]Student view saved to:[/green] {saved}")


@app.command()
def grade(
    key_file: Annotated[Path, typer.Argument(help="Answer key: questions JSON or authored content")],
    submission_file: Annotated[Path, typer.Argument(help="Submitted answers as a JSON object")],
    section: Annotated[
        Section,
        typer.Option("--section", help="Section of questions parsed from authored content"),
    ] = Section.READING,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the grading result as JSON"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show every graded item and debug logs"),
    ] = False,
) -> None:
    """
    Grade a submission against an answer key.

    Prints the score and band of every section and the overall band.
    """
    _configure_logging(verbose)
    settings = get_settings()

    for path in (key_file, submission_file):
        if not path.exists():
            console.print(f"[red]Error:[/red] File not found: {path}")
            raise typer.Exit(1)

    try:
        questions = _load_answer_key(key_file, section)
        submission = _load_submission(submission_file)
    except ExtractionError as e:
        _fail("Extraction Error", e)
    except ContentParseError as e:
        _fail("Parse Error", e)
    except ValidationError as e:
        _fail("Invalid Answer Key", e)
    except (json.JSONDecodeError, ValueError) as e:
        _fail("Invalid JSON", e)

    result = GradingEngine(settings).grade(questions, submission)
    _display_result(result, verbose)

    if output:
        saved = _write_json(output, result.model_dump_json(indent=2))
        console.print(f"\n[green]Result saved to:[/green] {saved}")


@app.command()
def band(
    section: Annotated[Section, typer.Argument(help="reading or listening")],
    correct: Annotated[int, typer.Argument(min=0, help="Number of correct answers")],
) -> None:
    """
    Look up the band score for a raw number of correct answers.
    """
    try:
        score = band_for(section, correct)
    except ValueError as e:
        _fail("Error", e)
    console.print(f"{section.value.title()} {correct}/40 -> band [bold]{score}[/bold]")


def _display_result(result: GradingResult, verbose: bool = False) -> None:
    """Display grading results in formatted tables."""
    table = Table(title="Sections")
    table.add_column("Section", style="cyan")
    table.add_column("Correct", justify="right")
    table.add_column("Percentage", justify="right")
    table.add_column("Points", justify="right")
    table.add_column("Band", justify="right")

    for score in result.sections:
        table.add_row(
            score.section.value.title(),
            f"{score.correct}/{score.total}",
            f"{score.percentage:.1f}%",
            str(score.points),
            str(score.band_score),
        )

    console.print(table)

    band_color = "green" if result.overall_band_score >= 7 else "yellow" if result.overall_band_score >= 5 else "red"
    console.print(
        Panel(
            f"[{band_color}][bold]{result.overall_band_score}[/bold][/{band_color}]",
            title="Overall Band",
        )
    )

    if result.flagged_for_review:
        console.print("[yellow]⚠ Some answers need a manual check[/yellow]")

    if verbose:
        details = Table(title="Answers")
        details.add_column("No.", justify="right", style="cyan")
        details.add_column("Type")
        details.add_column("Answer")
        details.add_column("Correct Answer")
        details.add_column("Status")

        for item in result.question_results:
            status = "✅" if item.is_correct else "❌"
            if item.needs_review:
                status += " ⚠️"
            details.add_row(
                str(item.question_number),
                item.question_type.value,
                "" if item.user_answer is None else str(item.user_answer),
                "" if item.correct_answer is None else str(item.correct_answer),
                status,
            )

        console.print(details)


if __name__ == "__main__":
    app()
