"""
Dataset Loader for upstream analytics exports.

Reads one JSON document produced by the ingestion pipeline and turns
it into the typed records the calculators consume.

Expected top-level keys (all optional):
- organization:      {"total_headcount", "licensed_seats", "headcounts": {dept: n}}
- feedback:          list of feedback messages
- usage:             list of monthly per-tool usage records
- department_usage:  list of per-department totals, or {tool: [{department, users, activity}]}
- expansion:         {"total_org_headcount", "baseline_seats", "candidates": [...]}
- roi_scenarios:     list of {"baseline", "target", "incremental_hours", "seats",
                     "derive_coding_hours", ...}
- benchmark_studies: list of published productivity studies
- current_adoption:  {dept: {"users", "premium", "standard"}}
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from .adoption_scorer import DepartmentUsage, rollup_department_usage
from .expansion_planner import ExpansionCandidate
from .roi_calculator import BenchmarkStudy, ToolEconomics
from .sentiment_calculator import FeedbackMessage
from .fte_calculator import MonthlyUsageRecord


@dataclass(frozen=True)
class LicenseAllocation:
    """Current and recommended Standard/Premium seats for a department."""
    department: str
    headcount: int
    current_standard: int = 0
    current_premium: int = 0
    target_standard: int = 0
    target_premium: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "LicenseAllocation":
        return cls(
            department=data["department"],
            headcount=int(data.get("headcount", 0) or 0),
            current_standard=int(data.get("current_standard", 0) or 0),
            current_premium=int(data.get("current_premium", 0) or 0),
            target_standard=int(data.get("target_standard", 0) or 0),
            target_premium=int(data.get("target_premium", 0) or 0),
        )


@dataclass(frozen=True)
class ROIScenario:
    """A baseline -> target tool comparison to evaluate."""
    baseline: ToolEconomics
    target: ToolEconomics
    incremental_hours: Optional[float] = None
    seats: int = 1
    hourly_rate: Optional[float] = None
    benchmark_baseline_hours: Optional[float] = None
    use_benchmark_studies: bool = False
    derive_coding_hours: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "ROIScenario":
        incremental_hours = data.get("incremental_hours")
        hourly_rate = data.get("hourly_rate")
        benchmark_hours = data.get("benchmark_baseline_hours")
        return cls(
            baseline=ToolEconomics.from_dict(data["baseline"]),
            target=ToolEconomics.from_dict(data["target"]),
            incremental_hours=float(incremental_hours) if incremental_hours is not None else None,
            seats=int(data.get("seats", 1) or 1),
            hourly_rate=float(hourly_rate) if hourly_rate is not None else None,
            benchmark_baseline_hours=float(benchmark_hours) if benchmark_hours is not None else None,
            use_benchmark_studies=bool(data.get("use_benchmark_studies", False)),
            derive_coding_hours=bool(data.get("derive_coding_hours", False)),
        )


@dataclass
class AnalyticsDataset:
    """Everything loaded from one upstream export."""
    feedback: List[FeedbackMessage] = field(default_factory=list)
    usage: List[MonthlyUsageRecord] = field(default_factory=list)
    department_usage: List[DepartmentUsage] = field(default_factory=list)
    expansion_candidates: List[ExpansionCandidate] = field(default_factory=list)
    license_allocations: List[LicenseAllocation] = field(default_factory=list)
    roi_scenarios: List[ROIScenario] = field(default_factory=list)
    benchmark_studies: List[BenchmarkStudy] = field(default_factory=list)
    current_adoption: Dict[str, Dict[str, int]] = field(default_factory=dict)
    headcounts: Dict[str, int] = field(default_factory=dict)
    total_org_headcount: int = 0
    baseline_seats: int = 0
    skipped_records: int = 0


class DatasetLoader:
    """
    Loader for the analytics JSON export.

    Malformed records are skipped with a warning; a missing or
    unreadable file raises.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Initialize the dataset loader.

        Args:
            path: Path to the JSON export
        """
        self.path = Path(path)
        self._skipped = 0

    def load(self) -> AnalyticsDataset:
        """
        Read and parse the export.

        Returns:
            AnalyticsDataset

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is not valid JSON or not a JSON object
        """
        with open(self.path, "r", encoding="utf-8") as f:
            raw = json.load(f)

        if not isinstance(raw, dict):
            raise ValueError(f"Dataset {self.path} must contain a JSON object")

        dataset = self.parse(raw)
        logging.info(
            f"Loaded dataset {self.path.name}: {len(dataset.feedback)} feedback messages, "
            f"{len(dataset.usage)} usage records, {len(dataset.department_usage)} departments, "
            f"{len(dataset.expansion_candidates) + len(dataset.license_allocations)} expansion candidates"
        )
        return dataset

    def parse(self, raw: dict) -> AnalyticsDataset:
        """Build an AnalyticsDataset from an already-decoded document."""
        self._skipped = 0

        organization = self._section(raw, "organization")
        expansion = self._section(raw, "expansion")

        headcounts = {}
        for department, count in self._section(organization, "headcounts", "organization").items():
            value = self._parse_record(count, int, f"headcount for {department}")
            if value is not None:
                headcounts[department] = value

        candidates = []
        allocations = []
        for entry in self._entries(expansion.get("candidates"), "expansion candidates"):
            if isinstance(entry, dict) and ("target_standard" in entry or "target_premium" in entry):
                allocation = self._parse_record(entry, LicenseAllocation.from_dict, "expansion allocation")
                if allocation is not None:
                    allocations.append(allocation)
            else:
                candidate = self._parse_record(entry, ExpansionCandidate.from_dict, "expansion candidate")
                if candidate is not None:
                    candidates.append(candidate)

        total_headcount = self._parse_count(
            expansion.get("total_org_headcount", organization.get("total_headcount")), "total headcount"
        )
        if total_headcount is None:
            total_headcount = sum(headcounts.values())

        baseline_seats = self._parse_count(
            expansion.get("baseline_seats", organization.get("licensed_seats")), "baseline seats"
        )

        dataset = AnalyticsDataset(
            feedback=self._parse_list(raw.get("feedback"), FeedbackMessage.from_dict, "feedback message"),
            usage=self._parse_list(raw.get("usage"), MonthlyUsageRecord.from_dict, "usage record"),
            department_usage=self._parse_department_usage(raw.get("department_usage"), headcounts),
            expansion_candidates=candidates,
            license_allocations=allocations,
            roi_scenarios=self._parse_list(raw.get("roi_scenarios"), ROIScenario.from_dict, "ROI scenario"),
            benchmark_studies=self._parse_list(
                raw.get("benchmark_studies"), BenchmarkStudy.from_dict, "benchmark study"
            ),
            current_adoption=self._parse_adoption(self._section(raw, "current_adoption")),
            headcounts=headcounts,
            total_org_headcount=total_headcount,
            baseline_seats=baseline_seats or 0,
        )
        dataset.skipped_records = self._skipped

        if self._skipped:
            logging.warning(f"Skipped {self._skipped} malformed records in {self.path.name}")

        return dataset

    def _section(self, parent: dict, key: str, label: str = None) -> dict:
        value = parent.get(key)
        if value is None:
            return {}
        if not isinstance(value, dict):
            name = f"{label}.{key}" if label else key
            logging.warning(f"Skipping malformed {name}: expected an object, got {type(value).__name__}")
            self._skipped += 1
            return {}
        return value

    def _entries(self, entries, label: str) -> list:
        if entries is None:
            return []
        if not isinstance(entries, list):
            logging.warning(f"Skipping malformed {label}: expected a list, got {type(entries).__name__}")
            self._skipped += 1
            return []
        return entries

    def _parse_adoption(self, adoption: dict) -> Dict[str, Dict[str, int]]:
        parsed = {}
        for department, counts in adoption.items():
            seats = self._parse_record(
                counts, lambda c: {k: int(v) for k, v in c.items()}, f"current adoption for {department}"
            )
            if seats is not None:
                parsed[department] = seats
        return parsed

    def _parse_count(self, value, label: str) -> Optional[int]:
        if value is None:
            return None
        return self._parse_record(value, int, label)

    def _parse_department_usage(self, entries, headcounts: Dict[str, int]) -> List[DepartmentUsage]:
        if isinstance(entries, dict):
            rolled_up = self._parse_record(
                entries, lambda breakdowns: rollup_department_usage(breakdowns, headcounts), "department usage breakdown"
            )
            return rolled_up or []
        return self._parse_list(entries, DepartmentUsage.from_dict, "department usage")

    def _parse_list(self, entries: Optional[list], factory: Callable, label: str) -> list:
        records = []
        for entry in self._entries(entries, f"{label} list"):
            record = self._parse_record(entry, factory, label)
            if record is not None:
                records.append(record)
        return records

    def _parse_record(self, entry, factory: Callable, label: str):
        try:
            return factory(entry)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logging.warning(f"Skipping malformed {label}: {e}")
            self._skipped += 1
            return None
