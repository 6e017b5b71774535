"""
Utility functions for AI Value Analytics module.
"""

import calendar
import dataclasses
import json
import logging
import math
import os
import sys
from datetime import datetime, date, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from dotenv import load_dotenv
from dateutil import parser as dateutil_parser


def setup_logging(verbose: bool = False) -> None:
    """
    Configure logging (WARNING and ERROR by default, INFO when verbose).

    Args:
        verbose: Include INFO level progress messages
    """
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def get_module_root() -> Path:
    """Get the root path of the ai_value module."""
    return Path(__file__).parent.parent


def load_env_vars() -> dict:
    """
    Load environment variables from .env file.

    Returns:
        dict: Dictionary containing path overrides (values may be None)
    """
    module_root = get_module_root()
    env_path = module_root / ".env"

    if env_path.exists():
        load_dotenv(env_path)
    else:
        # Try parent directory
        parent_env = module_root.parent / ".env"
        if parent_env.exists():
            load_dotenv(parent_env)

    return {
        "AI_VALUE_CONFIG": os.getenv("AI_VALUE_CONFIG"),
        "AI_VALUE_DATASET": os.getenv("AI_VALUE_DATASET"),
        "AI_VALUE_OUTPUT": os.getenv("AI_VALUE_OUTPUT"),
    }


def load_config(config_path: str = None) -> dict:
    """
    Load configuration from YAML file.

    Args:
        config_path: Optional path to config file. Defaults to config.yaml in module root.

    Returns:
        dict: Configuration dictionary (empty if the file holds no mapping)
    """
    if config_path is None:
        config_path = get_module_root() / "config.yaml"

    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f)

    return config or {}


def get_reference_date(config: dict) -> Optional[date]:
    """
    Get the reference date used to detect a partial (MTD) month.

    Args:
        config: Configuration dictionary

    Returns:
        date: Reference date from config, or None when not configured
    """
    ref_date_str = config.get("analysis", {}).get("reference_date")

    if ref_date_str is None:
        return None

    if isinstance(ref_date_str, date):
        return ref_date_str

    return datetime.strptime(ref_date_str, "%Y-%m-%d").date()


def parse_timestamp(timestamp_str: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp into a naive UTC datetime.

    Args:
        timestamp_str: ISO 8601 formatted timestamp string.

    Returns:
        datetime in UTC without tzinfo, or None if missing or unparseable.
    """
    if not timestamp_str:
        return None

    try:
        dt = dateutil_parser.isoparse(timestamp_str)
    except (ValueError, TypeError, OverflowError) as e:
        logging.warning(f"Failed to parse timestamp '{timestamp_str}': {e}")
        return None

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def parse_month_key(month_key: str) -> Tuple[Optional[int], Optional[int]]:
    """
    Parse year and month from a month key.

    Expected format: YYYY-MM
    Example: 2025-12 -> (2025, 12)

    Args:
        month_key: Month key string

    Returns:
        tuple: (year, month) as integers, (None, None) if unparseable
    """
    parts = str(month_key).split("-")
    if len(parts) >= 2:
        try:
            year = int(parts[0])
            month = int(parts[1])
            if 1 <= month <= 12:
                return (year, month)
        except ValueError:
            pass
    return (None, None)


def normalize_month_key(month_key: str) -> Optional[str]:
    """Canonical YYYY-MM form of a month key ("2024-1" -> "2024-01"), or None."""
    year, month = parse_month_key(month_key)
    if year is None:
        return None
    return f"{year:04d}-{month:02d}"


def get_month_name(month: int) -> str:
    """
    Get month name from month number.

    Args:
        month: Month number (1-12)

    Returns:
        str: Month name
    """
    months = [
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December"
    ]
    if 1 <= month <= 12:
        return months[month - 1]
    return f"Month {month}"


def format_month_label(month_key: str) -> str:
    """Get a 'Month YYYY' label for a YYYY-MM key (the key itself if unparseable)."""
    year, month = parse_month_key(month_key)
    if year is None:
        return str(month_key)
    return f"{get_month_name(month)} {year}"


def days_in_month(month_key: str) -> Optional[int]:
    """Number of calendar days in the month named by a YYYY-MM key."""
    year, month = parse_month_key(month_key)
    if year is None:
        return None
    return calendar.monthrange(year, month)[1]


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer with halves rounded up.

    Python's round() uses banker's rounding (round(2.5) == 2); scores
    are published with the usual half-up convention instead.
    """
    return int(math.floor(value + 0.5))


def safe_ratio(numerator: float, denominator: float) -> Optional[float]:
    """Return numerator / denominator, or None when the denominator is zero."""
    if not denominator:
        return None
    return numerator / denominator


def to_serializable(value: Any) -> Any:
    """Convert dataclasses (recursively) into plain dicts for JSON output."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {k: to_serializable(v) for k, v in dataclasses.asdict(value).items()}
    if isinstance(value, dict):
        return {str(k): to_serializable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_serializable(v) for v in value]
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def write_json(data: Dict[str, Any], filepath: str) -> Path:
    """
    Write analytics results to a JSON file.

    Args:
        data: Result dictionary (dataclasses are converted).
        filepath: Path where the JSON file should be written.

    Returns:
        Path of the written file.

    Raises:
        SystemExit: If writing fails.
    """
    output_path = Path(filepath)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(to_serializable(data), f, indent=2, ensure_ascii=False)

    except (IOError, OSError) as e:
        logging.error(f"Failed to write results file {filepath}: {e}")
        sys.exit(1)

    return output_path
