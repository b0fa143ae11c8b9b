from datetime import date

from services.bulletin_calculator import aggregate_subjects, compute_general_average, in_period, round2
from schemas.bulletins import SubjectAverage

from conftest import make_entry


# ==========================================================
# [과목별 평균]
# ==========================================================
def test_single_subject_average_uses_first_entry_coefficient():
    entries = [
        make_entry(1, "Mathématiques", 12, day=date(2025, 10, 1)),
        make_entry(1, "Mathématiques", 15, day=date(2025, 10, 8)),
        make_entry(1, "Mathématiques", 9, day=date(2025, 10, 15)),
    ]

    averages = aggregate_subjects(entries)

    assert len(averages) == 1
    assert averages[0].subject == "Mathématiques"
    assert averages[0].average == 12.00
    assert averages[0].coefficient == 1
    assert compute_general_average(averages).general_average == 12.00


def test_coefficient_comes_from_first_entry_not_average():
    entries = [
        make_entry(1, "Physique", 10, coefficient=3),
        make_entry(1, "Physique", 14, coefficient=1),
    ]

    [sa] = aggregate_subjects(entries)

    assert sa.coefficient == 3
    assert sa.average == 12.0
    assert list(sa.grades) == entries


def test_configured_subject_coefficient_overrides_first_entry():
    entries = [
        make_entry(1, "Physique", 10, coefficient=3),
        make_entry(1, "Chimie", 14, coefficient=1),
    ]

    averages = aggregate_subjects(entries, subject_coefficients={"Physique": 5})

    by_subject = {sa.subject: sa for sa in averages}
    assert by_subject["Physique"].coefficient == 5
    # 표에 없는 과목은 첫 평가 계수
    assert by_subject["Chimie"].coefficient == 1


def test_subjects_grouped_case_sensitive_in_first_appearance_order():
    entries = [
        make_entry(1, "anglais", 8),
        make_entry(1, "Anglais", 12),
        make_entry(1, "anglais", 10),
    ]

    averages = aggregate_subjects(entries)

    assert [sa.subject for sa in averages] == ["anglais", "Anglais"]
    assert averages[0].average == 9.0
    assert averages[1].average == 12.0


def test_date_window_is_inclusive_and_open_ended():
    entries = [
        make_entry(1, "SVT", 8, day=date(2025, 9, 30)),
        make_entry(1, "SVT", 12, day=date(2025, 10, 1)),
        make_entry(1, "SVT", 16, day=date(2025, 12, 20)),
        make_entry(1, "SVT", 20, day=date(2025, 12, 21)),
    ]

    [inside] = aggregate_subjects(entries, date(2025, 10, 1), date(2025, 12, 20))
    assert inside.average == 14.0
    assert len(inside.grades) == 2

    [from_start] = aggregate_subjects(entries, start_date=date(2025, 12, 20))
    assert from_start.average == 18.0

    assert aggregate_subjects(entries, date(2026, 1, 1), date(2026, 3, 31)) == []
    assert in_period(date(2025, 1, 1))


def test_out_of_range_scores_are_computed_as_given():
    entries = [
        make_entry(1, "EPS", 25),
        make_entry(1, "EPS", -1),
    ]

    [sa] = aggregate_subjects(entries)

    assert sa.average == 12.0


def test_average_rounding_is_half_up():
    assert round2(2.675) == 2.68
    assert round2(12.345) == 12.35
    assert round2(12.344) == 12.34

    entries = [make_entry(1, "Histoire", s) for s in (10, 10, 11)]
    [sa] = aggregate_subjects(entries)
    assert sa.average == 10.33


def test_aggregation_is_idempotent_and_does_not_mutate_input():
    entries = [
        make_entry(1, "Français", 13, coefficient=3),
        make_entry(1, "Anglais", 11, coefficient=2),
        make_entry(1, "Français", 16, coefficient=3),
    ]
    snapshot = [e.model_copy() for e in entries]

    first = aggregate_subjects(entries)
    second = aggregate_subjects(entries)

    assert first == second
    assert compute_general_average(first) == compute_general_average(second)
    assert entries == snapshot


# ==========================================================
# [가중 전체 평균]
# ==========================================================
def test_weighted_general_average():
    averages = [
        SubjectAverage(subject="Français", average=14, coefficient=3),
        SubjectAverage(subject="Anglais", average=10, coefficient=1),
    ]

    result = compute_general_average(averages)

    assert result.general_average == 13.00
    assert result.total_weighted_points == 52.0
    assert result.total_coefficient == 4


def test_no_subjects_gives_zero_average():
    result = compute_general_average([])

    assert result.general_average == 0
    assert result.total_weighted_points == 0
    assert result.total_coefficient == 0


def test_zero_coefficient_mass_gives_zero_average():
    result = compute_general_average([SubjectAverage(subject="Dessin", average=15, coefficient=0)])

    assert result.general_average == 0
    assert result.total_coefficient == 0
