import pytest

from mockup import api
from mockup.constraints.validator import ConstraintValidator
from mockup.models import BoundingBox
from mockup.settings import ConstraintDimensions
from tests.utils import make_region, scenario_template, to_buffer

DIMS = ConstraintDimensions()


def test_scenario_region_is_valid_with_small_area_warning():
    region = api.detect(to_buffer(scenario_template())).largest
    result = api.validate(region, DIMS, 400, 400)
    assert result.is_valid
    assert result.warnings == ("area_very_small",)
    assert result.score == pytest.approx(0.85)
    assert result.usable_area.bounds == BoundingBox(150, 125, 100, 50)
    assert result.usable_area.percentage == 100.0
    assert region.bbox.contains(result.usable_area.bounds)


def test_region_below_minimum_is_reported_and_blocking():
    region = make_region(180, 150, 10, 40)
    result = api.validate(region, DIMS, 400, 400)
    assert result.has_warning("width_below_minimum")
    assert not result.is_valid
    # the shrunk area is still returned so callers can override
    assert result.usable_area is not None
    assert region.bbox.contains(result.usable_area.bounds)
    assert any(issue.blocking for issue in result.issues)


def test_region_above_maximum_is_capped_around_centroid():
    region = make_region(100, 150, 200, 60)
    dims = ConstraintDimensions(max_width=80, max_height=40)
    result = api.validate(region, dims, 400, 400)
    assert result.has_warning("width_above_maximum")
    assert result.has_warning("height_above_maximum")
    bounds = result.usable_area.bounds
    assert bounds.width <= 80 and bounds.height <= 40
    assert region.bbox.contains(bounds)
    assert abs((bounds.x + bounds.width / 2.0) - 200) <= 1


def test_missing_region_gives_no_usable_area():
    result = api.validate(None, DIMS, 400, 400)
    assert not result.is_valid
    assert result.score == 0.0
    assert result.usable_area is None
    assert result.warnings == ("no_region",)


def test_edge_proximity_uses_placement_margin():
    region = make_region(8, 150, 100, 50)
    assert api.validate(region, DIMS, 400, 400).has_warning("near_edge_left")
    assert not api.validate(region, DIMS, 400, 400, "all_over").has_warning("near_edge_left")


def test_fragmentation_and_low_quality():
    region = make_region(150, 150, 100, 50, confidence=0.2)
    result = api.validate(region, DIMS, 400, 400, fragment_count=3)
    assert result.has_warning("fragmented")
    assert result.has_warning("low_quality")
    assert result.score < 1.0


def test_placement_type_picks_aspect_band():
    tall = make_region(180, 100, 40, 200)
    assert api.validate(tall, DIMS, 400, 400, "horizontal").has_warning("aspect_ratio_mismatch")
    assert not api.validate(tall, DIMS, 400, 400, "vertical").has_warning("aspect_ratio_mismatch")


def test_off_center_vertical_for_horizontal_placement():
    region = make_region(150, 320, 100, 50)
    assert api.validate(region, DIMS, 400, 400).has_warning("off_center")


def test_every_warning_has_a_recommendation():
    region = make_region(2, 2, 10, 10, confidence=0.2)
    result = api.validate(region, DIMS, 400, 400, fragment_count=2)
    assert len(result.issues) == len(result.warnings)
    assert all(issue.recommendation for issue in result.issues)
    assert set(result.recommendations) == {i.recommendation for i in result.issues}
    assert 0.0 <= result.score <= 1.0
    assert not result.is_valid


def test_report_and_general_recommendations():
    region = make_region(180, 150, 10, 40)
    result = api.validate(region, DIMS, 400, 400)
    report = ConstraintValidator.build_report(result)
    assert "Status: INVALID" in report
    assert "[BLOCKING] width_below_minimum" in report

    recs = ConstraintValidator.recommendations_for(region, result, "vertical")
    assert recs[:len(result.recommendations)] == list(result.recommendations)
    assert any("vertical placement" in r for r in recs)
    assert len(recs) == len(set(recs))
