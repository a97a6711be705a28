"""Rebalance strategy that keeps copartitioned topics together."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional


class BalanceError(Exception):
    """Raised when a balance plan cannot be created."""


@dataclass
class MemberMetadata:
    """Metadata a consumer group member sends when joining."""

    topics: list[str] = field(default_factory=list)
    user_data: Optional[bytes] = None


def _same_set(a: Iterable, b: Iterable) -> bool:
    a, b = list(a), list(b)
    if len(a) != len(b):
        return False
    members = set(a)
    return all(item in members for item in b)


@dataclass(frozen=True)
class CopartitioningStrategy:
    """Assigns the same partitions of every topic to the same member.

    With ``fail_on_inconsistent_topics`` set, planning fails if members
    request different sets of topics.
    """

    fail_on_inconsistent_topics: bool = False

    def name(self) -> str:
        return "copartition"

    def plan(
        self,
        members: Mapping[str, MemberMetadata],
        topics: Mapping[str, Iterable[int]],
    ) -> dict[str, dict[str, list[int]]]:
        """Return member -> topic -> partitions for the given group state."""
        all_partitions: list[int] = []
        all_topics: list[str] = []

        for topic, partitions in topics.items():
            all_topics.append(topic)
            if not all_partitions:
                all_partitions = list(partitions)
            elif not _same_set(all_partitions, partitions):
                raise BalanceError(
                    "Error balancing. Not all topics are copartitioned. For goka, "
                    f"all topics need to have the same number of partitions: {dict(topics)!r}"
                )

        for meta in members.values():
            if self.fail_on_inconsistent_topics and not _same_set(all_topics, meta.topics):
                raise BalanceError(
                    "Error balancing. Not all members request the same list of topics. "
                    f"A group-name clash might be the reason: {dict(members)!r}"
                )

        member_ids = sorted(members)
        all_partitions.sort()

        plan: dict[str, dict[str, list[int]]] = {}
        if not member_ids:
            return plan

        step = len(all_partitions) / len(member_ids)
        for idx, member_id in enumerate(member_ids):
            low = math.floor(idx * step + 0.5)
            high = math.floor((idx + 1) * step + 0.5)
            assigned = all_partitions[low:high]
            if not assigned:
                continue
            for topic in members[member_id].topics:
                plan.setdefault(member_id, {}).setdefault(topic, []).extend(assigned)
        return plan

    def assignment_data(
        self, member_id: str, topics: Mapping[str, Iterable[int]], generation_id: int
    ) -> bytes:
        """Return the user data for an assignment; this strategy sends none."""
        return b""


COPARTITIONING_STRATEGY = CopartitioningStrategy()
STRICT_COPARTITIONING_STRATEGY = CopartitioningStrategy(fail_on_inconsistent_topics=True)