"""
Job Classifier
==============
Maps a registration's structured job field plus its free-text fallback
(other_job) onto the report's demographic categories.

The free-text synonyms live in classifier_rules.yml so they can be
extended without touching code. The table is loaded once per process.

Usage:
    from app.modules.reports.classifier import classify

    flags = classify("other", "Nafaqaxo'r")
    flags.is_pensioner  # True
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, Optional, Pattern, Tuple, Union

import yaml

from app.core.config import settings
from app.core.exceptions import ClassifierConfigError
from app.core.logging_config import logger
from app.models.registration import JobStatus


DEFAULT_RULES_PATH = Path(__file__).parent / "classifier_rules.yml"

CATEGORIES = ("unemployed", "pensioner", "disabled")
MATCH_MODES = ("exact", "regex")

# Structured job values that set a category on their own
JOB_CATEGORY = {
    JobStatus.UNEMPLOYED.value: "unemployed",
    JobStatus.PENSIONER.value: "pensioner",
    JobStatus.DISABLED.value: "disabled",
}


@dataclass(frozen=True)
class Classification:
    """Independent category flags; one record may set several"""
    is_unemployed: bool = False
    is_pensioner: bool = False
    is_disabled: bool = False


@dataclass(frozen=True)
class ClassifierRule:
    """One synonym entry from the rule table"""
    category: str
    pattern: str
    match: str = "regex"
    case_sensitive: bool = False

    def __post_init__(self):
        if self.category not in CATEGORIES:
            raise ClassifierConfigError(
                f"Unknown category '{self.category}', expected one of {', '.join(CATEGORIES)}"
            )
        if self.match not in MATCH_MODES:
            raise ClassifierConfigError(
                f"Unknown match mode '{self.match}', expected one of {', '.join(MATCH_MODES)}"
            )
        if not self.pattern:
            raise ClassifierConfigError(f"Empty pattern for category '{self.category}'")
        try:
            object.__setattr__(self, "_compiled", self._compile())
        except re.error as e:
            raise ClassifierConfigError(f"Invalid pattern '{self.pattern}': {e}") from e

    def _compile(self) -> Pattern:
        flags = 0 if self.case_sensitive else re.IGNORECASE
        if self.match == "exact":
            return re.compile(re.escape(self.pattern.strip()), flags)
        return re.compile(self.pattern, flags)

    def matches(self, text: str) -> bool:
        if self.match == "exact":
            return self._compiled.fullmatch(text.strip()) is not None
        return self._compiled.search(text) is not None


def load_rules(path: Optional[Union[str, Path]] = None) -> Tuple[ClassifierRule, ...]:
    """
    Load the synonym table from YAML.

    Args:
        path: Rule file; defaults to the bundled classifier_rules.yml

    Returns:
        Rules in file order

    Raises:
        ClassifierConfigError: file missing, unparsable or with invalid entries
    """
    rules_path = Path(path) if path else DEFAULT_RULES_PATH

    if not rules_path.exists():
        raise ClassifierConfigError(f"Rule file not found: {rules_path}", source=str(rules_path))

    try:
        with open(rules_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ClassifierConfigError(f"Rule file is not valid YAML: {e}", source=str(rules_path)) from e

    entries = config.get('rules')
    if not isinstance(entries, list):
        raise ClassifierConfigError("Rule file must contain a 'rules' list", source=str(rules_path))

    rules = []
    for entry in entries:
        if not isinstance(entry, dict) or 'category' not in entry or 'pattern' not in entry:
            raise ClassifierConfigError(
                f"Each rule needs 'category' and 'pattern', got: {entry!r}",
                source=str(rules_path)
            )
        rules.append(ClassifierRule(
            category=entry['category'],
            pattern=str(entry['pattern']),
            match=entry.get('match', 'regex'),
            case_sensitive=bool(entry.get('case_sensitive', False)),
        ))

    logger.info(f"[Classifier] Loaded {len(rules)} rules from {rules_path.name}")
    return tuple(rules)


class JobClassifier:
    """Pure classifier over an immutable rule table"""

    def __init__(self, rules: Iterable[ClassifierRule]):
        by_category: Dict[str, list] = {category: [] for category in CATEGORIES}
        for rule in rules:
            by_category[rule.category].append(rule)
        self._rules = {category: tuple(items) for category, items in by_category.items()}

    @property
    def rules(self) -> Tuple[ClassifierRule, ...]:
        return tuple(rule for category in CATEGORIES for rule in self._rules[category])

    def classify(self, job: Optional[Union[str, JobStatus]], other_job: Optional[str]) -> Classification:
        job_value = job.value if isinstance(job, JobStatus) else job
        text = other_job or ""

        def hit(category: str) -> bool:
            if JOB_CATEGORY.get(job_value) == category:
                return True
            return bool(text) and any(rule.matches(text) for rule in self._rules[category])

        return Classification(
            is_unemployed=hit("unemployed"),
            is_pensioner=hit("pensioner"),
            is_disabled=hit("disabled"),
        )


@lru_cache(maxsize=1)
def get_classifier() -> JobClassifier:
    """Process-wide classifier built from the configured rule file"""
    return JobClassifier(load_rules(settings.CLASSIFIER_RULES_FILE))


def classify(job: Optional[Union[str, JobStatus]], other_job: Optional[str]) -> Classification:
    """Classify with the process-wide rule table"""
    return get_classifier().classify(job, other_job)
