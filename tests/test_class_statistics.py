from datetime import date

import pytest

from schemas.bulletins import RankingPolicy
from services.class_statistics import compute_class_statistics, compute_student_performance, rank_students
from services.ledger import InMemoryGradeLedger

from conftest import make_entry


def _ledger(scores_by_student, subject="Mathématiques"):
    return InMemoryGradeLedger(
        make_entry(sid, subject, score) for sid, score in scores_by_student.items()
    )


def test_class_ranking_and_subject_statistics():
    ledger = _ledger({10: 15.5, 11: 12.0, 12: 18.2})

    stats = compute_class_statistics([10, 11, 12], ledger)

    assert stats.total_students == 3
    assert stats.student_ranks[10].rank == 2
    assert stats.student_ranks[11].rank == 3
    assert stats.student_ranks[12].rank == 1
    assert stats.student_ranks[12].average == 18.2

    maths = stats.class_stats["Mathématiques"]
    assert maths.class_average == 15.23
    assert maths.min_average == 12.0
    assert maths.max_average == 18.2


def test_sequential_ranks_are_exactly_one_to_n_with_ties_in_roster_order():
    ledger = _ledger({1: 14, 2: 16, 3: 14, 4: 14, 5: 9})

    stats = compute_class_statistics([1, 2, 3, 4, 5], ledger, ranking=RankingPolicy.SEQUENTIAL)

    ranks = {sid: r.rank for sid, r in stats.student_ranks.items()}
    assert sorted(ranks.values()) == [1, 2, 3, 4, 5]
    assert ranks == {2: 1, 1: 2, 3: 3, 4: 4, 5: 5}


def test_competition_ranking_shares_ranks_and_skips():
    ledger = _ledger({1: 14, 2: 16, 3: 14, 4: 12})

    stats = compute_class_statistics([1, 2, 3, 4], ledger, ranking="competition")

    ranks = {sid: r.rank for sid, r in stats.student_ranks.items()}
    assert ranks == {2: 1, 1: 2, 3: 2, 4: 4}


def test_student_without_entries_is_ranked_last_with_zero_average():
    ledger = _ledger({1: 8})

    stats = compute_class_statistics([1, 2], ledger)

    assert stats.student_ranks[2].average == 0
    assert stats.student_ranks[2].rank == 2
    assert stats.performance_for(2).subject_averages == []
    # 평가가 없는 학생은 과목 통계에 포함되지 않음
    assert stats.class_stats["Mathématiques"].min_average == 8


def test_empty_roster_gives_empty_statistics():
    stats = compute_class_statistics([], InMemoryGradeLedger())

    assert stats.total_students == 0
    assert stats.class_stats == {}
    assert stats.student_ranks == {}


def test_performances_keep_roster_order_across_workers():
    roster = list(range(1, 41))
    ledger = _ledger({sid: (sid * 7) % 20 for sid in roster})

    stats = compute_class_statistics(roster, ledger, max_workers=4)

    assert [p.student_id for p in stats.performances] == roster
    assert sorted(r.rank for r in stats.student_ranks.values()) == roster


def test_window_applies_to_class_statistics():
    ledger = InMemoryGradeLedger([
        make_entry(1, "Français", 10, day=date(2025, 10, 1)),
        make_entry(1, "Français", 20, day=date(2026, 2, 1)),
        make_entry(2, "Français", 12, day=date(2025, 11, 1)),
    ])

    stats = compute_class_statistics([1, 2], ledger, date(2025, 9, 1), date(2025, 12, 31))

    assert stats.student_ranks[2].rank == 1
    assert stats.class_stats["Français"].class_average == 11.0


def test_single_student_is_ranked_first():
    performance = compute_student_performance(7, [make_entry(7, "Anglais", 11)])

    ranks = rank_students([performance])

    assert ranks[7].rank == 1


@pytest.mark.parametrize("policy", list(RankingPolicy))
def test_all_equal_averages(policy):
    ledger = _ledger({1: 10, 2: 10, 3: 10})

    stats = compute_class_statistics([1, 2, 3], ledger, ranking=policy)

    ranks = [stats.student_ranks[sid].rank for sid in (1, 2, 3)]
    assert ranks == ([1, 2, 3] if policy == RankingPolicy.SEQUENTIAL else [1, 1, 1])
