"""Data entry validators."""

import argparse
import datetime

import dateutil.parser


def parse_date(value: str) -> datetime.date:
    """Convert user input such as 2024-01-05 or 1/5/2024 to a date.

    Raises ValueError if value is not a date.
    """
    if value.strip().lower() == "today":
        return datetime.date.today()
    try:
        return dateutil.parser.parse(value, dayfirst=False).date()
    except (ValueError, OverflowError) as err:
        raise ValueError(f"{value!r} is not a valid date.") from err


def date_arg(value: str) -> str:
    """argparse type that converts a date to YYYY-MM-DD."""
    try:
        return parse_date(value).isoformat()
    except ValueError as err:
        raise argparse.ArgumentTypeError(str(err)) from err
