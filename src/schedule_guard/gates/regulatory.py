"""
Regulatory keyword detection shared by the REGULATORY_FLAGS gate and its repairer.

Patterns are checked in order; the first match names the regulation.
"""

import re

REGULATION_PATTERNS: dict[str, re.Pattern] = {
    "FDA": re.compile(r"FDA|510\(k\)|premarket|clinical trial", re.IGNORECASE),
    "HIPAA": re.compile(r"HIPAA|protected health|\bphi\b|patient privacy", re.IGNORECASE),
    "SOX": re.compile(r"Sarbanes-Oxley|\bSOX\b|financial audit", re.IGNORECASE),
    "GDPR": re.compile(r"GDPR|data protection|privacy regulation", re.IGNORECASE),
    "PCI": re.compile(r"PCI DSS|payment card|cardholder data", re.IGNORECASE),
}


def detect_regulation(task_name: str | None) -> str | None:
    """Return the regulation a task name refers to, or None."""
    if not task_name:
        return None
    for regulation, pattern in REGULATION_PATTERNS.items():
        if pattern.search(task_name):
            return regulation
    return None


def has_required_flag(task: dict) -> bool:
    requirement = task.get("regulatoryRequirement")
    return isinstance(requirement, dict) and requirement.get("isRequired") is True
