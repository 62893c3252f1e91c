from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
from pathlib import Path
from typing import AbstractSet, Iterable, List, Tuple

from .errors import CollisionCancelled


logger = logging.getLogger(__name__)


class CollisionPolicy(str, Enum):
    REPLACE = "replace"  # delete the existing file, write at the same path
    VERSION = "version"  # write to "name (n).ext" instead
    CANCEL = "cancel"    # abandon the batch before any write


@dataclass(frozen=True)
class PlannedOutput:
    source: Path
    output: Path
    replace_existing: bool = False


@dataclass
class CollisionScan:
    fresh: List[PlannedOutput] = field(default_factory=list)
    colliding: List[PlannedOutput] = field(default_factory=list)

    @property
    def has_collisions(self) -> bool:
        return bool(self.colliding)

    @property
    def claimed(self) -> set[Path]:
        return {p.output for p in self.fresh} | {p.output for p in self.colliding}


def next_available_name(path: Path, taken: AbstractSet[Path] = frozenset()) -> Path:
    """
    First "name (n).ext" for n = 1, 2, ... that is neither on disk nor in `taken`.

    photo.jpg -> photo (1).jpg
    """
    path = Path(path)
    base = path.with_suffix("")
    ext = path.suffix
    i = 1
    while True:
        candidate = Path(f"{base} ({i}){ext}")
        if not candidate.exists() and candidate not in taken:
            return candidate
        i += 1


def scan(pairs: Iterable[Tuple[Path, Path]]) -> CollisionScan:
    """
    Split (source, proposed output) pairs into fresh and colliding.

    A proposed output already claimed by an earlier source of the same
    batch is versioned right away, so two sources never share a target.
    """
    result = CollisionScan()
    claimed: set[Path] = set()

    for source, proposed in pairs:
        proposed = Path(proposed)
        if proposed in claimed:
            proposed = next_available_name(proposed, claimed)
        claimed.add(proposed)

        planned = PlannedOutput(source=Path(source), output=proposed)
        if proposed.exists():
            result.colliding.append(planned)
        else:
            result.fresh.append(planned)

    logger.debug("Collision scan: %d fresh, %d colliding", len(result.fresh), len(result.colliding))
    return result


def resolve(result: CollisionScan, policy: CollisionPolicy) -> List[PlannedOutput]:
    """
    Apply one policy to every colliding entry and return the final plan.

    Fresh entries come first, in scan order. CANCEL raises
    CollisionCancelled and touches nothing.
    """
    policy = CollisionPolicy(policy)
    plan = list(result.fresh)

    if not result.colliding:
        return plan

    if policy is CollisionPolicy.CANCEL:
        raise CollisionCancelled(len(result.colliding))

    if policy is CollisionPolicy.REPLACE:
        plan.extend(
            PlannedOutput(source=p.source, output=p.output, replace_existing=True)
            for p in result.colliding
        )
        return plan

    taken = result.claimed
    for p in result.colliding:
        target = next_available_name(p.output, taken)
        taken.add(target)
        logger.debug("Versioning %s -> %s", p.output.name, target.name)
        plan.append(PlannedOutput(source=p.source, output=target))
    return plan
