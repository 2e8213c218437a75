# File: tests/test_overlap.py
import pytest

from overlap_scout.errors import MalformedInput, SiteNotFoundInSource
from overlap_scout.models import AHREFS, OPPORTUNITIES, RUM, Site, SourceDataset
from overlap_scout.overlap import (
    OverlapEngine,
    compute_overlap,
    index_datasets,
    intersection,
    percentage,
)


def dataset(source, site_id, pages, label="sunstar.com"):
    return SourceDataset(source=source, site_id=site_id, label=label, pages=pages)


@pytest.fixture()
def engine() -> OverlapEngine:
    return OverlapEngine(
        {
            AHREFS: [dataset(AHREFS, "site-1", ["s.com/a", "s.com/b", "s.com/c"])],
            RUM: [dataset(RUM, "site-1", ["s.com/b", "s.com/c", "s.com/d"])],
            OPPORTUNITIES: [dataset(OPPORTUNITIES, "site-1", ["s.com/a", "s.com/c", "s.com/d"])],
        },
        top_n=200,
    )


@pytest.mark.parametrize(
    "first,second",
    [
        (["a", "b", "c"], ["c", "a", "x"]),
        ([], ["a"]),
        (["a", "a", "b"], ["b", "a", "a"]),
        (["x"], ["y"]),
    ],
)
def test_intersection_is_symmetric_as_sets(first, second):
    assert set(intersection(first, second)) == set(intersection(second, first))


def test_intersection_keeps_first_operand_order_without_duplicates():
    assert intersection(["c", "a", "c", "b"], ["a", "b", "c"]) == ["c", "a", "b"]
    assert intersection(["a", "b"]) == ["a", "b"]


def test_compute_overlap_pairwise_ignores_third_source():
    result = compute_overlap(
        {
            AHREFS: ["a", "b", "c"],
            RUM: ["b", "c", "d"],
            OPPORTUNITIES: ["a", "c", "d"],
        }
    )
    assert sorted(result.overlap_all) == ["c"]
    assert sorted(result.overlap_ahrefs_opportunities) == ["a", "c"]
    assert sorted(result.overlap_rum_opportunities) == ["c", "d"]


@pytest.mark.parametrize(
    "ahrefs,rum,opps",
    [
        (["a", "b"], ["b", "c"], ["a", "b", "c"]),
        ([], ["a"], ["a"]),
        (["x", "y", "z"], ["z", "y"], ["y"]),
    ],
)
def test_overlap_all_is_subset_of_pairwise(ahrefs, rum, opps):
    result = compute_overlap({AHREFS: ahrefs, RUM: rum, OPPORTUNITIES: opps})
    assert set(result.overlap_all) <= set(result.overlap_ahrefs_opportunities)
    assert set(result.overlap_all) <= set(result.overlap_rum_opportunities)


def test_compute_overlap_requires_all_sources():
    with pytest.raises(MalformedInput):
        compute_overlap({AHREFS: [], RUM: []})


def test_percentage_uses_fixed_denominator():
    assert percentage(1, 200) == 0.5
    assert percentage(3, 200) == 1.5
    assert percentage(1, 3) == 33.33
    with pytest.raises(ValueError):
        percentage(1, 0)


def test_metrics_do_not_depend_on_input_sizes(engine):
    metrics = engine.compute("site-1").metrics(200)
    assert metrics["overlapAll"] == {"count": 1, "percentage": 0.5}
    assert metrics["overlapAhrefsOpportunities"] == {"count": 2, "percentage": 1.0}
    assert metrics["overlapRumOpportunities"] == {"count": 2, "percentage": 1.0}


def test_site_stats_row(engine):
    row = engine.site_stats(Site(id="site-1", base_url="https://sunstar.com"))
    assert list(row) == [
        "siteId",
        "siteBaseURL",
        "overlapAll",
        "overlapAllPercentage",
        "overlapAhrefsOpportunities",
        "overlapAhrefsOpportunitiesPercentage",
        "overlapRumOpportunities",
        "overlapRumOpportunitiesPercentage",
    ]
    assert row["overlapAll"] == 1
    assert row["overlapAllPercentage"] == 0.5


def test_missing_site_raises(engine):
    with pytest.raises(SiteNotFoundInSource) as exc_info:
        engine.compute("unknown")
    assert exc_info.value.site_id == "unknown"
    assert exc_info.value.source_name == AHREFS


def test_missing_source_raises():
    engine = OverlapEngine({AHREFS: [dataset(AHREFS, "site-1", ["a"])]})
    with pytest.raises(SiteNotFoundInSource) as exc_info:
        engine.compute("site-1")
    assert exc_info.value.source_name == RUM


def test_record_without_pages_is_malformed():
    engine = OverlapEngine(
        {
            AHREFS: [dataset(AHREFS, "site-1", ["a"])],
            RUM: [dataset(RUM, "site-1", ["a"])],
            OPPORTUNITIES: [dataset(OPPORTUNITIES, "site-1", None)],
        }
    )
    with pytest.raises(MalformedInput):
        engine.compute("site-1")


def test_index_datasets_skips_empty_and_rejects_duplicates():
    index = index_datasets([dataset(RUM, "", ["a"]), dataset(RUM, "s1", ["b"])])
    assert list(index) == ["s1"]
    with pytest.raises(MalformedInput):
        index_datasets([dataset(RUM, "s1", []), dataset(RUM, "s1", [])])


def test_engine_rejects_non_positive_top_n():
    with pytest.raises(ValueError):
        OverlapEngine({}, top_n=0)
