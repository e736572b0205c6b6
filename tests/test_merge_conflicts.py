import pytest

from pickem.constants import MergeCategory
from pickem.data_models.merge import EmailRecord, MergeRecords, PaymentRecord, PickRecord
from pickem.utils.exceptions import MergeValidationError
from pickem.utils.merge_conflicts import classify_merge, split_all, split_category


def records(user_id, picks=(), payments=(), anonymous=(), emails=(), account_email=None):
    return MergeRecords(
        user_id=user_id,
        picks=tuple(PickRecord(i, s, w) for i, (s, w) in enumerate(picks, start=1)),
        payments=tuple(PaymentRecord(i, s) for i, s in enumerate(payments, start=1)),
        anonymous_picks=tuple(PickRecord(i, s, w) for i, (s, w) in enumerate(anonymous, start=1)),
        emails=tuple(EmailRecord(i, e) for i, e in enumerate(emails, start=1)),
        account_email=account_email,
    )


def test_disjoint_records_have_no_conflicts():
    source = records("src", picks=[(2024, 1), (2024, 2)], payments=[2023], emails=["a@x.com"])
    target = records("tgt", picks=[(2024, 3)], payments=[2024], emails=["b@x.com"])

    preview = classify_merge(source, target)

    assert not preview.has_conflicts
    assert preview.transferable.picks == 2
    assert preview.transferable.payments == 1
    assert preview.transferable.emails == 1
    assert preview.projected_total(MergeCategory.PICKS) == 3
    assert preview.projected_total(MergeCategory.PAYMENTS) == 2


def test_shared_week_is_one_conflict_and_excluded():
    source = records("src", picks=[(2024, 3), (2024, 4)])
    target = records("tgt", picks=[(2024, 3)])

    preview = classify_merge(source, target)

    assert preview.transferable.picks == 1
    assert preview.conflict_count(MergeCategory.PICKS) == 1
    conflict = preview.conflicts[0]
    assert conflict.category == MergeCategory.PICKS
    assert (conflict.season, conflict.week) == (2024, 3)
    assert "Week 3" in conflict.description


def test_several_source_picks_in_one_conflicting_week_make_one_conflict():
    source = records("src", picks=[(2024, 3), (2024, 3), (2024, 3)])
    target = records("tgt", picks=[(2024, 3)])

    split = split_category(MergeCategory.PICKS, source.picks, target.picks)

    assert split.transferable == ()
    assert len(split.conflicting) == 3
    assert len(split.conflicts) == 1


def test_same_week_in_other_season_is_not_a_conflict():
    preview = classify_merge(
        records("src", picks=[(2023, 3)]),
        records("tgt", picks=[(2024, 3)]),
    )
    assert not preview.has_conflicts


def test_emails_compare_case_insensitively():
    preview = classify_merge(
        records("src", emails=["  Sam@Example.com "]),
        records("tgt", emails=["sam@example.com"]),
    )

    assert preview.conflict_count(MergeCategory.EMAILS) == 1
    assert preview.conflicts[0].email == "sam@example.com"
    assert preview.transferable.emails == 0


def test_categories_are_independent():
    source = records("src", picks=[(2024, 1)], anonymous=[(2024, 1)], payments=[2024])
    target = records("tgt", anonymous=[(2024, 1)])

    preview = classify_merge(source, target)

    assert preview.transferable.picks == 1
    assert preview.transferable.payments == 1
    assert preview.transferable.anonymous_picks == 0
    assert [c.category for c in preview.conflicts] == [MergeCategory.ANONYMOUS_PICKS]


def test_payment_conflict_per_season():
    preview = classify_merge(records("src", payments=[2024, 2023]), records("tgt", payments=[2024]))
    assert preview.conflict_count(MergeCategory.PAYMENTS) == 1
    assert preview.conflicts[0].season == 2024


def test_merging_user_into_itself_is_rejected():
    with pytest.raises(MergeValidationError):
        split_all(records("same"), records("same"))


def test_empty_users_produce_empty_preview():
    preview = classify_merge(records("src"), records("tgt"))
    assert preview.transferable.total == 0
    assert preview.conflicts == ()


def test_conflict_to_dict_shape():
    preview = classify_merge(records("src", picks=[(2024, 3)]), records("tgt", picks=[(2024, 3)]))
    assert preview.conflicts[0].to_dict() == {
        'type': 'picks',
        'season': 2024,
        'week': 3,
        'email': None,
        'description': "Both users have picks for Week 3, 2024",
    }


def test_anonymous_pick_conflicts_with_target_authenticated_pick():
    source = records("src", anonymous=[(2024, 3), (2024, 4)])
    target = records("tgt", picks=[(2024, 3)])

    preview = classify_merge(source, target)

    assert preview.transferable.anonymous_picks == 1
    assert preview.conflict_count(MergeCategory.ANONYMOUS_PICKS) == 1
    conflict = preview.conflicts[0]
    assert (conflict.season, conflict.week) == (2024, 3)
    # only the target's anonymous picks count toward its anonymous total
    assert preview.projected_total(MergeCategory.ANONYMOUS_PICKS) == 1


def test_source_authenticated_pick_ignores_target_anonymous_pick():
    preview = classify_merge(
        records("src", picks=[(2024, 3)]),
        records("tgt", anonymous=[(2024, 3)])
    )

    assert preview.transferable.picks == 1
    assert not preview.has_conflicts


def test_email_matching_target_account_email_conflicts():
    source = records("src", emails=["Login@Target.com", "other@x.com"])
    target = records("tgt", account_email="login@target.com")

    splits = split_all(source, target)

    emails = splits[MergeCategory.EMAILS]
    assert [r.email for r in emails.transferable] == ["other@x.com"]
    assert [r.email for r in emails.conflicting] == ["Login@Target.com"]
    assert emails.conflicts[0].email == "login@target.com"
    assert classify_merge(source, target).target_counts.emails == 0
