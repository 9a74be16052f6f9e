"""Run the Rollcall command line application."""
import argparse
import logging
import pathlib
from typing import Optional

import rich.console
import rich.logging
import rich.markup
import rich.prompt
import rich.table

from rollcall import config
from rollcall.features import validators
from rollcall.model import attendance_mod, kvstore, students_mod, tracker


logger = logging.getLogger(__name__)
console = rich.console.Console()

STATUS_STYLES = {
    attendance_mod.Status.PRESENT: "green",
    attendance_mod.Status.ABSENT: "red",
    attendance_mod.Status.NOT_MARKED: "dim",
}


def build_parser() -> argparse.ArgumentParser:
    """Define command line arguments."""
    parser = argparse.ArgumentParser(
        prog="rollcall", description="Track student attendance by date."
    )
    parser.add_argument(
        "-d", "--db_path",
        help="Path to attendance database",
        type=pathlib.Path,
        default=None
    )
    parser.add_argument(
        "-c", "--config_path",
        help="Path to config file",
        type=pathlib.Path,
        default=None
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debugging messages."
    )
    parser.set_defaults(func=None)
    subparsers = parser.add_subparsers()

    init_parser = subparsers.add_parser(
        "init", help="Create a configuration file with default settings."
    )
    init_parser.add_argument(
        "path",
        nargs="?",
        type=pathlib.Path,
        default=pathlib.Path(config.CONFIG_FILE_NAME),
        help="Where to write the config file."
    )
    init_parser.set_defaults(func=init_config)

    list_parser = subparsers.add_parser(
        "list", help="Show the roster and each student's status for a date."
    )
    add_date_argument(list_parser)
    list_parser.set_defaults(func=list_students)

    add_parser = subparsers.add_parser("add", help="Add a student.")
    add_parser.add_argument("name", help="Student's name")
    add_parser.add_argument("roll", help="Roll or registration number")
    add_parser.set_defaults(func=add_student)

    edit_parser = subparsers.add_parser(
        "edit", help="Change a student's name and roll number."
    )
    edit_parser.add_argument("student_id", help="ID of student to change")
    edit_parser.add_argument("name", help="Student's name")
    edit_parser.add_argument("roll", help="Roll or registration number")
    edit_parser.set_defaults(func=edit_student)

    remove_parser = subparsers.add_parser(
        "remove", help="Delete a student and the student's attendance records."
    )
    remove_parser.add_argument("student_id", help="ID of student to delete")
    remove_parser.add_argument(
        "-y", "--yes",
        action="store_true",
        help="Delete without asking for confirmation."
    )
    remove_parser.set_defaults(func=remove_student)

    mark_parser = subparsers.add_parser(
        "mark", help="Mark a student present or absent."
    )
    mark_parser.add_argument("student_id", help="ID of student to mark")
    mark_parser.add_argument(
        "status",
        type=str.lower,
        choices=["present", "absent"],
        help="Attendance status"
    )
    add_date_argument(mark_parser)
    mark_parser.set_defaults(func=mark_student)

    status_parser = subparsers.add_parser(
        "status", help="Show a student's status for a date."
    )
    status_parser.add_argument("student_id", help="ID of student")
    add_date_argument(status_parser)
    status_parser.set_defaults(func=show_status)
    return parser


def add_date_argument(parser: argparse.ArgumentParser) -> None:
    """Add the --date option, which defaults to today."""
    parser.add_argument(
        "--date",
        type=validators.date_arg,
        default=None,
        help="Attendance date, defaults to today."
    )


def configure_logging(level: str) -> None:
    """Send log messages to the console."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[rich.logging.RichHandler(console=console, show_path=False)],
        force=True,
    )


def to_absolute_path(path: pathlib.Path) -> pathlib.Path:
    """Convert relative paths to absolute paths."""
    if not path.is_absolute():
        path = pathlib.Path.cwd() / path
    return path


def describe(student: students_mod.Student) -> str:
    """Student name and roll number, escaped for console markup."""
    return rich.markup.escape(f"{student.name} ({student.roll})")


def styled(status: attendance_mod.Status) -> str:
    """Status wrapped in console markup for its color."""
    return f"[{STATUS_STYLES[status]}]{status}[/]"


def open_tracker(settings: config.Settings) -> tracker.Tracker:
    """Load the stores named in settings."""
    if settings.db_path is None:
        raise config.ConfigError(
            "No database path is set.",
            config.ConfigError.ErrorType.PATH_DOES_NOT_EXIST,
        )
    return tracker.Tracker.open(
        settings.db_path, settings.students_key, settings.attendance_key
    )


def init_config(args: argparse.Namespace, settings: config.Settings) -> int:
    """Write the example configuration file."""
    path = to_absolute_path(args.path)
    settings.create_new_config_file(path)
    console.print(f"Created config file [bold]{path}[/bold]")
    return 0


def list_students(args: argparse.Namespace, settings: config.Settings) -> int:
    """Print the sorted roster with attendance for one date."""
    date = args.date or attendance_mod.today_iso()
    stores = open_tracker(settings)
    students = stores.roster.list()
    if not students:
        console.print("No students yet. Add one with [bold]rollcall add[/bold].")
        return 0
    day = stores.attendance.day(date)
    table = rich.table.Table(title=f"Attendance for {date}")
    table.add_column("Roll", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Status")
    table.add_column("ID", style="dim")
    for student in students:
        status = day.get(student.student_id, attendance_mod.Status.NOT_MARKED)
        table.add_row(
            rich.markup.escape(student.roll),
            rich.markup.escape(student.name),
            styled(status),
            student.student_id,
        )
    console.print(table)
    return 0


def add_student(args: argparse.Namespace, settings: config.Settings) -> int:
    """Add a student to the roster."""
    student = open_tracker(settings).roster.add(args.name, args.roll)
    if student is None:
        console.print("[red]Name and roll number must not be blank.[/red]")
        return 1
    console.print(f"Added {describe(student)}, ID {student.student_id}")
    return 0


def edit_student(args: argparse.Namespace, settings: config.Settings) -> int:
    """Change a student's name and roll number."""
    student = open_tracker(settings).roster.update(
        args.student_id, args.name, args.roll
    )
    if student is None:
        console.print("[red]Name and roll number must not be blank.[/red]")
        return 1
    console.print(f"Updated {describe(student)}")
    return 0


def remove_student(args: argparse.Namespace, settings: config.Settings) -> int:
    """Delete a student after asking for confirmation."""
    stores = open_tracker(settings)
    student = stores.roster.get(args.student_id)
    if student is None:
        raise students_mod.StudentNotFoundError(args.student_id)
    if not args.yes and not rich.prompt.Confirm.ask(
        f"Delete [bold]{describe(student)}[/bold]?", console=console
    ):
        console.print("Nothing deleted.")
        return 0
    stores.roster.remove(student.student_id)
    console.print(f"Deleted {describe(student)}")
    return 0


def mark_student(args: argparse.Namespace, settings: config.Settings) -> int:
    """Mark a student present or absent."""
    date = args.date or attendance_mod.today_iso()
    stores = open_tracker(settings)
    student = stores.roster.get(args.student_id)
    if student is None:
        raise students_mod.StudentNotFoundError(args.student_id)
    status = attendance_mod.Status(args.status.capitalize())
    stores.attendance.mark(date, student.student_id, status)
    console.print(f"{describe(student)}: {styled(status)} on {date}")
    return 0


def show_status(args: argparse.Namespace, settings: config.Settings) -> int:
    """Print a student's status for one date."""
    date = args.date or attendance_mod.today_iso()
    stores = open_tracker(settings)
    student = stores.roster.get(args.student_id)
    if student is None:
        raise students_mod.StudentNotFoundError(args.student_id)
    status = stores.attendance.status_of(date, student.student_id)
    console.print(f"{describe(student)}: {styled(status)} on {date}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Function to run the app, used for the project.scripts entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.func is None:
        parser.print_help()
        return 0
    settings = config.Settings()
    try:
        settings.update_from_args(args)
    except config.ConfigError as err:
        console.print(f"[red]{err}[/red]")
        return 1
    configure_logging(settings.log_level)
    try:
        return args.func(args, settings)
    except (students_mod.StudentNotFoundError, config.ConfigError) as err:
        console.print(f"[red]{err}[/red]")
        return 1
    except kvstore.PersistenceError as err:
        logger.error("%s", err)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
