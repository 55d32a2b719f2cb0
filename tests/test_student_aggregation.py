# ABOUTME: Tests grouping of upload records into per-student summaries.
# ABOUTME: Covers running averages, recency ordering, validation policies, and attribute policies.

from datetime import datetime, timedelta, timezone
import random

import pytest

from src.common.schemas import UploadRecord
from src.common.validation import ValidationError
from src.roster.aggregation import (
    AttributePolicy,
    aggregate_by_student,
    round_half_up,
    summaries_to_frame,
)

T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def _rec(record_id, student_id, minutes, score=None, **kwargs):
    return UploadRecord(
        id=record_id,
        student_id=student_id,
        uploaded_at=T0 + timedelta(minutes=minutes),
        score=score,
        **kwargs,
    )


def test_three_essays_with_one_unscored():
    records = [_rec("a", "S1", 0, 80), _rec("b", "S1", 10, None), _rec("c", "S1", 20, 90)]

    summaries = aggregate_by_student(records)

    assert len(summaries) == 1
    s1 = summaries[0]
    assert s1.essay_count == 3
    assert s1.scored_count == 2
    assert s1.average_score == 85.0
    assert s1.last_upload_date == T0 + timedelta(minutes=20)
    assert [e.id for e in s1.essays] == ["a", "b", "c"]


def test_students_sorted_by_most_recent_upload():
    records = [_rec("a", "S1", 0, 70), _rec("b", "S2", 30, 95)]

    summaries = aggregate_by_student(records)

    assert [s.student_id for s in summaries] == ["S2", "S1"]


def test_last_upload_date_is_max_not_last_seen():
    records = [_rec("a", "S1", 50), _rec("b", "S1", 5)]

    summary = aggregate_by_student(records)[0]

    assert summary.last_upload_date == T0 + timedelta(minutes=50)


def test_unscored_first_record_then_scored():
    records = [_rec("a", "S1", 0, None), _rec("b", "S1", 1, 7)]

    summary = aggregate_by_student(records)[0]

    assert summary.scored_count == 1
    assert summary.average_score == 7.0


def test_no_scores_means_null_average():
    summary = aggregate_by_student([_rec("a", "S1", 0), _rec("b", "S1", 1)])[0]

    assert summary.scored_count == 0
    assert summary.average_score is None


def test_average_independent_of_input_order():
    records = [_rec(str(i), "S1", i, score) for i, score in enumerate([70, 85, 90, 62, 77])]
    shuffled = list(records)
    random.Random(7).shuffle(shuffled)

    forward = aggregate_by_student(records)[0].average_score
    backward = aggregate_by_student(list(reversed(records)))[0].average_score
    mixed = aggregate_by_student(shuffled)[0].average_score

    assert forward == pytest.approx(76.8)
    assert backward == pytest.approx(forward)
    assert mixed == pytest.approx(forward)


def test_average_rounded_to_two_places():
    summary = aggregate_by_student([_rec("a", "S1", 0, 1), _rec("b", "S1", 1, 2), _rec("c", "S1", 2, 2)])[0]

    assert summary.average_score == 1.67


def test_round_half_up_rounds_ties_upward():
    assert round_half_up(2.675) == 2.68
    assert round_half_up(0.125) == 0.13
    assert round_half_up(85.0) == 85.0


def test_counts_cover_every_record():
    records = [_rec(str(i), f"S{i % 4}", i, i if i % 3 else None) for i in range(17)]

    summaries = aggregate_by_student(records)

    assert sum(s.essay_count for s in summaries) == len(records)
    for s in summaries:
        assert s.essay_count == len(s.essays)
        assert s.scored_count == sum(1 for e in s.essays if e.score is not None)
        assert s.last_upload_date == max(e.uploaded_at for e in s.essays)
        assert (s.average_score is None) == (s.scored_count == 0)


def test_empty_and_single_record():
    assert aggregate_by_student([]) == []

    summaries = aggregate_by_student([_rec("a", "S1", 0, 10)])
    assert len(summaries) == 1
    assert summaries[0].essay_count == 1


def test_repeated_calls_are_identical_and_input_untouched():
    records = [_rec("a", "S1", 0, 70), _rec("b", "S2", 0, 60), _rec("c", "S1", 3, 80)]
    snapshot = list(records)

    first = aggregate_by_student(records)
    second = aggregate_by_student(records)

    assert first == second
    assert records == snapshot


def test_student_ids_are_case_sensitive():
    summaries = aggregate_by_student([_rec("a", "s1", 0), _rec("b", "S1", 1)])

    assert {s.student_id for s in summaries} == {"s1", "S1"}


def test_strict_policy_raises_naming_field():
    records = [_rec("a", "S1", 0), UploadRecord(id="bad", student_id="", uploaded_at=T0)]

    with pytest.raises(ValidationError) as excinfo:
        aggregate_by_student(records)

    assert excinfo.value.field == "studentId"
    assert excinfo.value.record_id == "bad"
    assert "bad" in str(excinfo.value)


def test_strict_policy_rejects_missing_timestamp():
    with pytest.raises(ValidationError) as excinfo:
        aggregate_by_student([UploadRecord(id="x", student_id="S1", uploaded_at=None)])

    assert excinfo.value.field == "uploadedAt"


def test_skip_policy_drops_only_invalid_records():
    records = [
        _rec("a", "S1", 0, 50),
        UploadRecord(id="bad", student_id="S1", uploaded_at=None, score=0),
        _rec("c", "S1", 1, 70),
    ]

    summary = aggregate_by_student(records, policy="skip")[0]

    assert summary.essay_count == 2
    assert summary.average_score == 60.0


def test_first_seen_attributes_by_default():
    records = [
        _rec("a", "S1", 0, student_grade="Grade 5", student_age=10),
        _rec("b", "S1", 5, student_grade="Grade 6", student_age=11),
    ]

    summary = aggregate_by_student(records)[0]

    assert summary.student_grade == "Grade 5"
    assert summary.student_age == 10


def test_last_seen_attributes_keep_known_values():
    records = [
        _rec("a", "S1", 0, student_grade="Grade 5", student_gender="F"),
        _rec("b", "S1", 5, student_grade="Grade 6"),
    ]

    summary = aggregate_by_student(records, attribute_policy=AttributePolicy.LAST_SEEN)[0]

    assert summary.student_grade == "Grade 6"
    assert summary.student_gender == "F"


def test_unknown_attribute_policy_rejected():
    with pytest.raises(ValueError):
        aggregate_by_student([_rec("a", "S1", 0)], attribute_policy="newest")


def test_summaries_to_frame_columns():
    frame = summaries_to_frame(aggregate_by_student([_rec("a", "S1", 0, 9), _rec("b", "S2", 1)]))

    assert list(frame["student_id"]) == ["S2", "S1"]
    assert frame.loc[frame["student_id"] == "S1", "average_score"].iloc[0] == 9.0
    assert "essays" not in frame.columns


def test_naive_and_aware_upload_times_mix():
    naive = UploadRecord(id="n", student_id="S1", uploaded_at=datetime(2024, 3, 1, 12, 0), score=6)
    records = [_rec("a", "S1", 0, 10), naive, _rec("b", "S2", 60)]

    summaries = aggregate_by_student(records)

    assert [s.student_id for s in summaries] == ["S1", "S2"]
    s1 = summaries[0]
    assert s1.last_upload_date == datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
    assert s1.average_score == 8.0


def test_infinite_scores_do_not_count():
    records = [_rec("a", "S1", 0, float("inf")), _rec("b", "S1", 1, 7), _rec("c", "S2", 2, float("-inf"))]

    summaries = {s.student_id: s for s in aggregate_by_student(records)}

    assert (summaries["S1"].scored_count, summaries["S1"].average_score) == (1, 7.0)
    assert (summaries["S2"].scored_count, summaries["S2"].average_score) == (0, None)
