import pytest

from flprocess.errors import UsageError
from flprocess.pipelines.cardinality import broadcast, ensure_unique, validate_cardinality
from flprocess.stages import Stage


def test_count_mismatch_names_both_counts():
    """Verify three ids against two subject-info files is fatal."""
    with pytest.raises(UsageError) as exc:
        validate_cardinality([Stage.PREPROC], ["a", "b", "c"], ["1.cfg", "2.cfg"], [], [])
    assert "2 subject information files, 3 subject ids" in str(exc.value)


def test_one_to_many_single_project():
    """Verify donotexpand keeps all subjects in one project."""
    res = validate_cardinality(
        [Stage.PREPROC], ["proj"], ["/d/a.cfg", "/d/b.cfg"], [], [], donotexpand=True
    )
    assert res.subject_ids == ("proj,1", "proj,2")


def test_one_to_many_project_per_subject():
    """Verify the default expansion creates one project per subject."""
    res = validate_cardinality([Stage.PREPROC_IMPORT], ["Exp/proj.mat"], ["/d/a.cfg", "/d/b.cfg"], [], [])
    assert res.subject_ids == ("Exp/proj/a", "Exp/proj/b")


def test_pipeline_broadcast_and_mismatch():
    """Verify a single pipeline is broadcast and other counts are rejected."""
    res = validate_cardinality([Stage.PREPROC_APPEND], ["a", "b", "c"], [], ["p.cfg"], [])
    assert res.pipeline_info == ("p.cfg",) * 3
    with pytest.raises(UsageError, match=r"\(3 subject ids, 2 preprocessing information files\)"):
        validate_cardinality([Stage.PREPROC_APPEND], ["a", "b", "c"], [], ["p.cfg", "q.cfg"], [])


def test_design_checked_for_model_and_all():
    """Verify design lists are checked for MODEL and ALL only."""
    res = validate_cardinality([Stage.ALL], ["a", "b"], ["a.cfg", "b.cfg"], [], ["m.cfg"])
    assert res.design_info == ("m.cfg", "m.cfg")
    with pytest.raises(UsageError, match="design information"):
        validate_cardinality([Stage.MODEL], ["a", "b", "c"], [], [], ["m.cfg", "n.cfg"])
    # QA stages ignore design lists entirely
    res = validate_cardinality([Stage.QA_CREATE], ["a", "b", "c"], [], [], ["m.cfg", "n.cfg"])
    assert res.design_info == ("m.cfg", "n.cfg")


def test_model_does_not_require_subject_info_count():
    """Verify MODEL runs without subject info for every id."""
    res = validate_cardinality([Stage.MODEL], ["a", "b"], [], [], [])
    assert res.subject_ids == ("a", "b")


def test_invalid_stage_combinations():
    """Verify APPEND+subject_info and IMPORT+pipeline_info are rejected."""
    with pytest.raises(UsageError, match="PREPROC.APPEND cannot be combined with subject_info"):
        validate_cardinality([Stage.PREPROC_APPEND], ["a"], ["a.cfg"], [], [])
    with pytest.raises(UsageError, match="PREPROC.IMPORT cannot be combined with pipeline_info"):
        validate_cardinality([Stage.PREPROC_IMPORT], ["a"], ["a.cfg"], ["p.cfg"], [])


def test_empty_id_list_is_fatal():
    """Verify an empty id list is rejected."""
    with pytest.raises(UsageError, match="No subject ID entered"):
        validate_cardinality([Stage.MODEL], [], [], [], [])


def test_broadcast_empty_list_stays_empty():
    """Verify zero entries are allowed."""
    assert broadcast("design information", [], 4) == ()


def test_ensure_unique():
    """Verify repeated identifiers are named in the error."""
    ensure_unique(["a", "a,1", "a,2"])
    with pytest.raises(UsageError, match="Found repeated subject_id sub-01"):
        ensure_unique(["sub-01", "sub-02", "sub-01"])


def test_model_subject_info_override_is_batch_wide():
    """Verify a standalone MODEL run broadcasts one override and rejects short lists."""
    res = validate_cardinality([Stage.MODEL], ["a", "b"], ["/d/new.cfg"], [], [])
    assert res.subject_info == ("/d/new.cfg", "/d/new.cfg")
    with pytest.raises(UsageError, match=r"\(3 subject ids, 2 subject information files\)"):
        validate_cardinality([Stage.MODEL, Stage.QA_CREATE], ["a", "b", "c"], ["x.cfg", "y.cfg"], [], [])
