import pytest

from goka.copartition import (
    COPARTITIONING_STRATEGY,
    STRICT_COPARTITIONING_STRATEGY,
    BalanceError,
    MemberMetadata,
)


def test_name():
    assert COPARTITIONING_STRATEGY.name() == "copartition"


@pytest.mark.parametrize(
    "members, topics, strict",
    [
        ({"M1": ["T1"]}, {"T2": [0, 1, 2]}, True),
        ({"M1": ["T1", "T2"]}, {"T1": [0, 1, 2], "T2": [0, 1]}, False),
        ({"M1": ["T1", "T2"], "M2": ["T2"]}, {"T1": [0, 1, 2], "T2": [0, 1, 2]}, True),
    ],
    ids=["inconsistent-topic-members", "not-copartitioned", "inconsistent-members"],
)
def test_plan_errors(members, topics, strict):
    strategy = STRICT_COPARTITIONING_STRATEGY if strict else COPARTITIONING_STRATEGY
    metadata = {name: MemberMetadata(topics=t) for name, t in members.items()}
    with pytest.raises(BalanceError):
        strategy.plan(metadata, topics)


@pytest.mark.parametrize(
    "members, topics, expected",
    [
        (
            {"M1": ["T1", "T2"], "M2": ["T2"]},
            {"T1": [0, 1, 2], "T2": [0, 1, 2]},
            {"M1": {"T1": [0, 1], "T2": [0, 1]}, "M2": {"T2": [2]}},
        ),
        (
            {"M1": ["T1"]},
            {"T1": [0, 1, 2]},
            {"M1": {"T1": [0, 1, 2]}},
        ),
        (
            {"M1": ["T1"], "M2": ["T1"]},
            {"T1": [0, 1, 2]},
            {"M1": {"T1": [0, 1]}, "M2": {"T1": [2]}},
        ),
        (
            {"M1": ["T1", "T2", "T3"], "M2": ["T2", "T3", "T1"], "M3": ["T2", "T3", "T1"]},
            {"T1": [0, 1, 2, 3, 4, 5], "T2": [0, 1, 2, 3, 4, 5], "T3": [0, 1, 2, 3, 4, 5]},
            {
                "M1": {"T1": [0, 1], "T2": [0, 1], "T3": [0, 1]},
                "M2": {"T1": [2, 3], "T2": [2, 3], "T3": [2, 3]},
                "M3": {"T1": [4, 5], "T2": [4, 5], "T3": [4, 5]},
            },
        ),
    ],
    ids=["tolerate-inconsistent-members", "single-member", "multi-member", "multi-member-multitopic"],
)
def test_plan(members, topics, expected):
    metadata = {name: MemberMetadata(topics=t) for name, t in members.items()}
    assert COPARTITIONING_STRATEGY.plan(metadata, topics) == expected


def test_plan_sorts_partitions_without_mutating_input():
    partitions = [2, 0, 1]
    plan = COPARTITIONING_STRATEGY.plan({"M1": MemberMetadata(topics=["T1"])}, {"T1": partitions})
    assert plan == {"M1": {"T1": [0, 1, 2]}}
    assert partitions == [2, 0, 1]


def test_plan_without_members_is_empty():
    assert COPARTITIONING_STRATEGY.plan({}, {"T1": [0, 1]}) == {}