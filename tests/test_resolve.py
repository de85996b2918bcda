from pathlib import Path

import pytest

from flprocess.config.schema import ProcessOptions
from flprocess.errors import PatternError, UsageError
from flprocess.pipelines.resolve import ResolutionContext, resolve_subjects
from flprocess.stages import Stage


@pytest.fixture
def ctx(tmp_path: Path, root_dir: Path) -> ResolutionContext:
    return ResolutionContext(start_dir=tmp_path, root=root_dir)


def test_template_ids_from_globbed_subject_info(ctx, cfg_files, root_dir: Path):
    """Verify sub-%04d ids come out in subject-info order."""
    opts = ProcessOptions(subject_id="Exp/sub-%04d", subject_info="data/DataSubject*.cfg", pipeline_info="p.cfg")
    records = resolve_subjects([Stage.PREPROC], opts, ctx)
    assert [r.subject_id for r in records] == ["sub-0001", "sub-0002"]
    assert records[0].dataset_path == root_dir / "Exp" / "sub-0001.mat"
    assert records[1].subject_info == str(cfg_files[1])
    assert records[0].pipeline_info == str(root_dir / "p.cfg")
    assert (root_dir / "Exp").is_dir()


def test_star_template_falls_back_when_nothing_matches(ctx, cfg_files, root_dir: Path):
    """Verify an unmatched Exp/* id is derived from the subject-info names."""
    opts = ProcessOptions(subject_id="Exp/*", subject_info=[str(p) for p in cfg_files])
    records = resolve_subjects([Stage.PREPROC], opts, ctx)
    assert [r.dataset_path for r in records] == [
        root_dir / "Exp" / "DataSubject1.mat",
        root_dir / "Exp" / "DataSubject2.mat",
    ]


def test_plain_glob_without_match_is_fatal(ctx):
    """Verify a non-template id glob that matches nothing is fatal."""
    with pytest.raises(PatternError, match="No match to sub-0?"):
        resolve_subjects([Stage.MODEL], ProcessOptions(subject_id="sub-0?"), ctx)


def test_id_glob_matches_existing_datasets(ctx, tmp_path: Path):
    """Verify globbed ids point at the matched datasets."""
    exp = tmp_path / "Exp"
    exp.mkdir()
    (exp / "sub-01.mat").write_text("")
    (exp / "sub-02.mat").write_text("")
    records = resolve_subjects([Stage.MODEL], ProcessOptions(subject_id="Exp/sub-*"), ctx)
    assert [r.dataset_path for r in records] == [exp / "sub-01.mat", exp / "sub-02.mat"]
    assert all(r.working_dir == exp for r in records)


def test_repeated_ids_abort_before_any_folder_is_created(ctx, root_dir: Path):
    """Verify duplicate bare ids are fatal and leave the disk untouched."""
    opts = ProcessOptions(subject_id=["A/sub-01", "B/sub-01"])
    with pytest.raises(UsageError, match="Found repeated subject_id sub-01"):
        resolve_subjects([Stage.MODEL], opts, ctx)
    assert not (root_dir / "A").exists()


def test_count_mismatch_aborts_without_side_effects(ctx, root_dir: Path):
    """Verify three ids against two subject-info files creates nothing."""
    opts = ProcessOptions(subject_id=["X/a", "X/b", "X/c"], subject_info=["a.cfg", "b.cfg"])
    with pytest.raises(UsageError, match="2 subject information files, 3 subject ids"):
        resolve_subjects([Stage.PREPROC], opts, ctx)
    assert not (root_dir / "X").exists()


def test_single_project_expansion_sets_subindex(ctx, cfg_files, root_dir: Path):
    """Verify donotexpand gives one dataset addressed by sub-index."""
    opts = ProcessOptions(subject_id="proj", subject_info=[str(p) for p in cfg_files], donotexpand=True)
    records = resolve_subjects([Stage.PREPROC], opts, ctx)
    assert [r.dataset_subindex for r in records] == [1, 2]
    assert {r.dataset_path for r in records} == {root_dir / "proj.mat"}
    assert [r.label for r in records] == ["proj,1", "proj,2"]


def test_ids_derived_from_subject_info_when_missing(ctx, cfg_files, root_dir: Path):
    """Verify an empty subject_id uses the subject-info base names."""
    opts = ProcessOptions(subject_info=[str(p) for p in cfg_files])
    records = resolve_subjects([Stage.PREPROC_IMPORT], opts, ctx)
    assert [r.subject_id for r in records] == ["DataSubject1", "DataSubject2"]
    assert records[0].working_dir == root_dir


def test_resolution_is_idempotent(ctx, cfg_files):
    """Verify resolving the same inputs twice yields equal records."""
    opts = ProcessOptions(subject_id="Exp/*", subject_info="data/*.cfg", design_info="model.cfg")
    first = resolve_subjects([Stage.ALL], opts, ctx)
    second = resolve_subjects([Stage.ALL], opts, ctx)
    assert first == second
    assert first[0].design_info == "model.cfg"
