from datetime import date

import pytest

from config import STATUS_COMPLETED, STATUS_PENDING
from metrics_calculator import (
    REPORT_STATUS_FIELDS, STATUS_FIELDS, EvaluationStats, calculate_evaluation_stats,
    calculate_program_stats, classify_evaluation, count_filled, filter_by_status, format_date_br,
    is_filled, parse_date, status_badge, status_label,
)


@pytest.mark.parametrize("value, expected", [
    (None, False), ("", False), ("   \n\t", False), ("x", True), (" ok ", True), (0, True),
])
def test_is_filled(value, expected):
    assert is_filled(value) is expected


def test_no_or_one_field_filled_is_pending(make_record):
    assert classify_evaluation(make_record()) == STATUS_PENDING
    for field in STATUS_FIELDS:
        assert classify_evaluation(make_record(**{field: "feito"})) == STATUS_PENDING


def test_any_two_fields_filled_is_completed(make_record):
    for i, first in enumerate(STATUS_FIELDS):
        for second in STATUS_FIELDS[i + 1:]:
            record = make_record(**{first: "a", second: "b"})
            assert classify_evaluation(record) == STATUS_COMPLETED


def test_whitespace_only_does_not_count(make_record):
    record = make_record(action_feedback="   ", completed_impact="Melhorou a equipa")
    assert count_filled(record) == 1
    assert classify_evaluation(record) == STATUS_PENDING


def test_learning_notes_only_count_in_report_variant(make_record):
    record = make_record(action_feedback="Fiz reuniões 1:1", learning_notes="Aprendi a delegar")
    assert classify_evaluation(record, STATUS_FIELDS) == STATUS_PENDING
    assert classify_evaluation(record, REPORT_STATUS_FIELDS) == STATUS_COMPLETED


def test_raw_api_dicts_are_classified_like_models():
    raw = {"feedback_acoes_realizadas": "ok", "impacto_atividade_realizada": "bom", "acoes_nao_realizadas": ""}
    assert classify_evaluation(raw) == STATUS_COMPLETED
    assert classify_evaluation({"action_feedback": "ok"}) == STATUS_PENDING


def test_stats_for_active_program(make_record, active_program):
    records = [
        make_record(id=1, action_feedback="a", completed_impact="b"),
        make_record(id=2),
    ]
    stats = calculate_program_stats(active_program, records)
    assert stats == EvaluationStats(total=2, pending=1, completed=1)


def test_stats_partition_records(make_record):
    records = [make_record(id=i, action_feedback="a" if i % 2 else None, completed_impact="b" if i % 3 else "")
               for i in range(1, 11)]
    stats = calculate_evaluation_stats(records)
    assert stats.total == 10
    assert stats.pending + stats.completed == stats.total


def test_finalized_program_shows_zeros(make_record, finalized_program):
    records = [make_record(id=1, action_feedback="a", completed_impact="b")]
    assert calculate_program_stats(finalized_program, records) == EvaluationStats(0, 0, 0)


def test_empty_program_stats(active_program):
    assert calculate_program_stats(active_program, []) == EvaluationStats(0, 0, 0)


def test_filter_by_status(make_record):
    done = make_record(id=1, action_feedback="a", actions_not_taken="b")
    todo = make_record(id=2, action_feedback="a")
    records = [done, todo]
    assert filter_by_status(records, STATUS_COMPLETED) == [done]
    assert filter_by_status(records, STATUS_PENDING) == [todo]
    assert filter_by_status(records, None) == records


def test_status_labels():
    assert status_label(STATUS_PENDING) == "Pendente"
    assert status_label(STATUS_COMPLETED) == "Concluída"
    assert status_badge(STATUS_COMPLETED).endswith("Concluída")


@pytest.mark.parametrize("value, expected", [
    ("2024-03-15", "15/03/2024"),
    ("2024-03-15T10:30:00.000Z", "15/03/2024"),
    (date(2024, 1, 2), "02/01/2024"),
    (None, "Data não informada"),
    ("", "Data não informada"),
    ("15 de março", "Data inválida"),
])
def test_format_date_br(value, expected):
    assert format_date_br(value) == expected


def test_parse_date_accepts_iso_strings():
    assert parse_date("2024-03-15T23:59:00") == date(2024, 3, 15)
    assert parse_date(None) is None
