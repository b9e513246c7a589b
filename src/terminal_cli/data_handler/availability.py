"""
Time-versioned availability rules.

Each rule says which pairs every exchange offers starting from its effective
date. The table that applies to a day is the one of the latest rule whose
effective date is on or before that day ("most recent rule wins").

Rules come from an ``AvailabilitySource``:
- ``PackagedAvailabilitySource``: JSON files bundled in ``terminal_cli/metadata``
- ``DirectoryAvailabilitySource``: the same layout in a local directory
- ``StaticAvailabilitySource``: in-memory rules (tests, embedding)
"""
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from loguru import logger

from ..exceptions import AvailabilityConfigError

AvailabilityTable = Mapping[str, Tuple[str, ...]]

# Rule files are named after their effective date, optionally with a leading "_"
RULE_NAME_FORMATS = ("%Y_%m_%d", "%Y-%m-%d")


@dataclass(frozen=True)
class AvailabilityRule:
    effective_date: date
    table: AvailabilityTable


def make_table(raw: Mapping[str, Iterable[str]]) -> AvailabilityTable:
    """Freeze a raw ``{exchange: [pair, ...]}`` mapping, keeping first-seen pair order."""
    frozen: Dict[str, Tuple[str, ...]] = {}
    for exchange, pairs in raw.items():
        frozen[exchange] = tuple(dict.fromkeys(pairs))
    return MappingProxyType(frozen)


def parse_rule_date(filename: str) -> Optional[date]:
    """Effective date encoded in a rule file name, or None if it is not a rule file."""
    if not filename.endswith(".json"):
        return None
    stem = filename[: -len(".json")].lstrip("_")
    for fmt in RULE_NAME_FORMATS:
        try:
            return datetime.strptime(stem, fmt).date()
        except ValueError:
            continue
    return None


def parse_rule_content(name: str, content: str) -> AvailabilityTable:
    try:
        raw = json.loads(content)
    except json.JSONDecodeError as e:
        raise AvailabilityConfigError(f"invalid json in {name}: {e}") from e

    if not isinstance(raw, dict):
        raise AvailabilityConfigError(f"invalid json in {name}: expected an object of exchange -> pairs")
    for exchange, pairs in raw.items():
        if not isinstance(pairs, list) or not all(isinstance(p, str) for p in pairs):
            raise AvailabilityConfigError(
                f"invalid json in {name}: pairs for '{exchange}' must be a list of strings"
            )
    return make_table(raw)


def sort_rules(rules: Iterable[AvailabilityRule]) -> List[AvailabilityRule]:
    """Sort rules ascending by effective date, rejecting duplicate dates."""
    ordered = sorted(rules, key=lambda r: r.effective_date)
    for previous, current in zip(ordered, ordered[1:]):
        if previous.effective_date == current.effective_date:
            raise AvailabilityConfigError(
                f"duplicate availability rule for {current.effective_date.isoformat()}"
            )
    return ordered


def resolve_table(rules: Sequence[AvailabilityRule], day: date) -> Optional[AvailabilityTable]:
    """
    Table in force on ``day``.

    Args:
        rules: Rules sorted ascending by effective date
        day: Query date

    Returns:
        Table of the rule with the greatest effective date <= day, or None when
        ``day`` precedes every rule.
    """
    for rule in reversed(rules):
        if rule.effective_date <= day:
            return rule.table
    return None


class AvailabilitySource(ABC):
    """Read-only provider of availability rules."""

    @abstractmethod
    def load_rules(self) -> List[AvailabilityRule]:
        """Return all rules sorted ascending by effective date."""

    @staticmethod
    def _rules_from_entries(entries: Iterable[Tuple[str, Callable[[], str]]]) -> List[AvailabilityRule]:
        rules = []
        for name, read_text in entries:
            effective = parse_rule_date(name)
            if effective is None:
                logger.debug(f"Skipping {name}: not a dated rule file")
                continue
            rules.append(AvailabilityRule(effective, parse_rule_content(name, read_text())))
        return sort_rules(rules)


class StaticAvailabilitySource(AvailabilitySource):
    """Rules held in memory."""

    def __init__(self, rules: Mapping[date, Mapping[str, Iterable[str]]]):
        self._rules = sort_rules(
            AvailabilityRule(effective, make_table(table)) for effective, table in rules.items()
        )

    def load_rules(self) -> List[AvailabilityRule]:
        return list(self._rules)


class DirectoryAvailabilitySource(AvailabilitySource):
    """Rules stored as ``<dir>/<YYYY_MM_DD>.json`` files."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def load_rules(self) -> List[AvailabilityRule]:
        if not self.directory.is_dir():
            raise AvailabilityConfigError(f"could not read directory {self.directory}")
        try:
            entries = sorted(p for p in self.directory.iterdir() if p.is_file())
        except OSError as e:
            raise AvailabilityConfigError(f"could not read directory {self.directory}: {e}") from e

        def reader(path: Path):
            def read() -> str:
                try:
                    return path.read_text(encoding="utf-8")
                except OSError as e:
                    raise AvailabilityConfigError(f"could not read {path}: {e}") from e
            return read

        return self._rules_from_entries((p.name, reader(p)) for p in entries)


class PackagedAvailabilitySource(AvailabilitySource):
    """Rules bundled with the package under ``metadata/<data_type>/``."""

    PACKAGE = "terminal_cli"

    def __init__(self, data_type: str):
        self.data_type = data_type

    def load_rules(self) -> List[AvailabilityRule]:
        folder = resources.files(self.PACKAGE) / "metadata" / self.data_type
        if not folder.is_dir():
            raise AvailabilityConfigError(f"could not read directory metadata/{self.data_type}")
        entries = sorted((item for item in folder.iterdir() if item.is_file()), key=lambda t: t.name)
        return self._rules_from_entries(
            (item.name, lambda item=item: item.read_text(encoding="utf-8")) for item in entries
        )


def source_for(data_type: str, metadata_dir: Optional[Path] = None) -> AvailabilitySource:
    """Directory source when ``metadata_dir`` is given, else the packaged rules for ``data_type``."""
    if metadata_dir is not None:
        return DirectoryAvailabilitySource(Path(metadata_dir) / data_type)
    return PackagedAvailabilitySource(data_type)
