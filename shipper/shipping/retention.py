"""
Size-budget retention for the remote namespace.

The evaluator looks at the catalog as it was before this run's upload and
picks at most one entry to evict: the oldest one. Staying over budget by more
than one entry's worth is resolved over subsequent runs.
"""

from typing import List, Optional

from .catalog import RemoteEntry


class RetentionPolicy:
    """Maximum total bytes allowed under the remote prefix."""

    def __init__(self, max_total_bytes: int):
        if isinstance(max_total_bytes, bool) or not isinstance(max_total_bytes, int):
            raise TypeError(f"max_total_bytes must be an int, got {type(max_total_bytes).__name__}")
        if max_total_bytes <= 0:
            raise ValueError(f"max_total_bytes must be positive, got {max_total_bytes}")
        self.max_total_bytes = max_total_bytes

    def __repr__(self):
        return f'<RetentionPolicy max_total_bytes={self.max_total_bytes}>'


class RetentionDecision:
    """Outcome of evaluating the catalog against a policy."""

    def __init__(self, cumulative_bytes: int, eviction_candidate: Optional[RemoteEntry], over_budget: bool):
        self.cumulative_bytes = cumulative_bytes
        self.eviction_candidate = eviction_candidate
        self.over_budget = over_budget

    @property
    def should_evict(self) -> bool:
        return self.over_budget and self.eviction_candidate is not None

    def __repr__(self):
        candidate = self.eviction_candidate.key if self.eviction_candidate else None
        return (
            f'<RetentionDecision total={self.cumulative_bytes} '
            f'over_budget={self.over_budget} candidate={candidate}>'
        )


def total_size(entries: List[RemoteEntry]) -> int:
    return sum(entry.size_bytes for entry in entries)


def oldest_entry(entries: List[RemoteEntry]) -> Optional[RemoteEntry]:
    """
    Return the entry with the earliest modification time.

    Ties go to the lexicographically smallest key.
    """
    if not entries:
        return None
    return min(entries, key=lambda entry: (entry.modified_at, entry.key))


def evaluate_retention(entries: List[RemoteEntry], policy: RetentionPolicy) -> RetentionDecision:
    """
    Evaluate the remote catalog against the retention budget.

    Args:
        entries: Current remote entries, not including the archive about to be uploaded
        policy: RetentionPolicy with the byte budget

    Returns:
        RetentionDecision; should_evict is True only when the total strictly
        exceeds the budget
    """
    cumulative = total_size(entries)
    return RetentionDecision(
        cumulative_bytes=cumulative,
        eviction_candidate=oldest_entry(entries),
        over_budget=cumulative > policy.max_total_bytes
    )
