# solver/heuristics.py
"""Pluggable ordering and inference strategies for the backtracking search.

Each strategy is a plain function looked up by name:

* variable ordering: ``fixed`` (lowest unplaced item) or ``mrv``
  (most constrained item first, ties to the lowest index)
* value ordering: ``domain`` (row-major as produced by the domain model) or
  ``lcv`` (least constraining value first, stable on ties)
* inference: forward checking over per-item live domains
"""

from typing import Callable, Dict, Iterable, List, Sequence, Tuple

from models import Coordinate

ConflictFn = Callable[[Coordinate, Coordinate], bool]
LegalValuesFn = Callable[[int], List[Coordinate]]


# ---------- variable ordering ----------

def select_fixed(unplaced: Iterable[int], legal_values: LegalValuesFn) -> int:
    return min(unplaced)


def select_most_constrained(unplaced: Iterable[int], legal_values: LegalValuesFn) -> int:
    best_item = None
    best_count = None
    for item in sorted(unplaced):
        count = len(legal_values(item))
        if best_count is None or count < best_count:
            best_item = item
            best_count = count
            if count == 0:
                break
    return best_item


VARIABLE_ORDERINGS: Dict[str, Callable[[Iterable[int], LegalValuesFn], int]] = {
    "fixed": select_fixed,
    "mrv": select_most_constrained,
}


# ---------- value ordering ----------

def order_domain(
    candidates: Sequence[Coordinate],
    other_domains: Sequence[Sequence[Coordinate]],
    conflicts: ConflictFn,
) -> List[Coordinate]:
    return list(candidates)


def eliminations(
    value: Coordinate,
    other_domains: Sequence[Sequence[Coordinate]],
    conflicts: ConflictFn,
) -> int:
    """Count values ``value`` would knock out of the other items' domains."""
    total = 0
    for dom in other_domains:
        for v in dom:
            if v == value or conflicts(value, v):
                total += 1
    return total


def order_least_constraining(
    candidates: Sequence[Coordinate],
    other_domains: Sequence[Sequence[Coordinate]],
    conflicts: ConflictFn,
) -> List[Coordinate]:
    if not other_domains:
        return list(candidates)
    scored = [(eliminations(c, other_domains, conflicts), idx, c) for idx, c in enumerate(candidates)]
    scored.sort(key=lambda t: (t[0], t[1]))
    return [c for _, _, c in scored]


VALUE_ORDERINGS: Dict[str, Callable[..., List[Coordinate]]] = {
    "domain": order_domain,
    "lcv": order_least_constraining,
}


# ---------- inference ----------

def forward_check(
    item: int,
    value: Coordinate,
    live: Dict[int, List[Coordinate]],
    unplaced: Iterable[int],
    conflicts: ConflictFn,
) -> Tuple[bool, Dict[int, List[Coordinate]]]:
    """Prune ``value`` and its conflicts from every other unplaced item.

    Returns ``(ok, saved)`` where ``saved`` maps item -> previous live domain so
    the caller can undo the pruning.  ``ok`` is False as soon as one domain
    empties; pruning stops there.
    """
    saved: Dict[int, List[Coordinate]] = {}
    for other in sorted(unplaced):
        if other == item:
            continue
        current = live[other]
        keep = [v for v in current if not (v == value or conflicts(value, v))]
        if len(keep) == len(current):
            continue
        saved[other] = current
        live[other] = keep
        if not keep:
            return False, saved
    return True, saved


def restore(live: Dict[int, List[Coordinate]], saved: Dict[int, List[Coordinate]]) -> None:
    for other, previous in saved.items():
        live[other] = previous
