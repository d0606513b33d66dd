from __future__ import annotations

import pytest

from pipelines.orthogonal import BoundaryMode, OrthogonalPipeline, orthogonalize_boundary
from pipelines.orthogonal.geometry import ensure_clockwise, is_axis_aligned, is_closed, point_in_polygon
from pipelines.orthogonal.kml_document import coordinate_nodes, node_text, parse_boundary_document, parse_coordinates

BASE_LAT, BASE_LON = -23.55, -46.63

SMALL_SQUARE = [
    (BASE_LAT, BASE_LON),
    (BASE_LAT, BASE_LON + 0.001),
    (BASE_LAT + 0.001, BASE_LON + 0.001),
    (BASE_LAT + 0.001, BASE_LON),
    (BASE_LAT, BASE_LON),
]

DIAMOND = [
    (BASE_LAT + 0.001, BASE_LON),
    (BASE_LAT, BASE_LON + 0.001),
    (BASE_LAT - 0.001, BASE_LON),
    (BASE_LAT, BASE_LON - 0.001),
    (BASE_LAT + 0.001, BASE_LON),
]


def _kml(*rings: list) -> str:
    placemarks = []
    for index, ring in enumerate(rings):
        coords = " ".join(f"{lon},{lat},0" for lat, lon in ring)
        placemarks.append(
            f"<Placemark><name>Parcel {index}</name><Polygon><outerBoundaryIs><LinearRing>"
            f"<coordinates>{coords}</coordinates>"
            f"</LinearRing></outerBoundaryIs></Polygon></Placemark>"
        )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<kml xmlns="http://www.opengis.net/kml/2.2"><Document><name>Survey</name>'
        + "".join(placemarks)
        + "</Document></kml>"
    )


def _assert_orthogonal_ring(points: list) -> None:
    assert is_closed(points)
    for a, b in zip(points, points[1:]):
        assert is_axis_aligned(a, b), f"diagonal edge {a} -> {b}"


@pytest.mark.parametrize("mode", ["DENTRO", "inside", BoundaryMode.INSIDE])
def test_mode_parsing_accepts_legacy_labels(mode) -> None:
    assert BoundaryMode.parse(mode) is BoundaryMode.INSIDE


def test_unknown_mode_is_rejected() -> None:
    with pytest.raises(ValueError):
        BoundaryMode.parse("sideways")


def test_axis_aligned_square_with_large_step_is_unchanged() -> None:
    square = [(0.0, 0.0), (0.0, 1.0), (1.0, 1.0), (1.0, 0.0), (0.0, 0.0)]
    result = OrthogonalPipeline().process_ring(square, {"mode": "inside", "step_meters": 500000.0})
    assert result.points == ensure_clockwise(square)
    assert result.violations is None
    assert result.quality["orthogonal"]


def test_small_square_collapses_back_to_its_corners() -> None:
    result = OrthogonalPipeline().process_ring(SMALL_SQUARE, {"mode": "inside", "step_meters": 15.0})
    assert len(result.points) == 5
    _assert_orthogonal_ring(result.points)
    assert result.quality["valid"]
    assert result.quality["area_ratio"] == pytest.approx(1.0, rel=1e-3)


def test_robust_outside_never_enters_the_original() -> None:
    result = OrthogonalPipeline().process_ring(
        SMALL_SQUARE,
        {"mode": "outside", "step_meters": 15.0, "robust_outside": True, "offset_meters": 5.0},
    )
    assert result.violations == 0
    assert not any(point_in_polygon(p, SMALL_SQUARE) for p in result.points)
    _assert_orthogonal_ring(result.points)
    assert result.quality["area_ratio"] > 1.0


@pytest.mark.parametrize("mode", ["inside", "outside"])
def test_diamond_becomes_a_closed_staircase(mode) -> None:
    result = OrthogonalPipeline().process_ring(DIAMOND, {"mode": mode, "step_meters": 15.0})
    _assert_orthogonal_ring(result.points)
    assert len(result.points) > len(DIAMOND)
    assert result.quality["non_orthogonal_edges"] == 0


def test_process_rewrites_document() -> None:
    result = OrthogonalPipeline().process(_kml(SMALL_SQUARE), "Lot 12", {"mode": "inside", "step_meters": 15.0})

    assert result["success"]
    assert result["count"] == 5
    assert result["violations"] is None
    assert result["csv"].splitlines()[0] == "Longitude,Latitude"
    assert len(result["csv"].splitlines()) == 6

    root = parse_boundary_document(result["kml"])
    assert "Survey" not in result["kml"]
    assert result["kml"].count("<name>Lot 12</name>") == 2
    points = parse_coordinates(node_text(coordinate_nodes(root)[0]))
    assert len(points) == 5
    assert result["metadata"]["options"]["mode"] == "inside"
    assert result["metadata"]["processed_rings"] == 1


def test_every_ring_is_processed_and_counted() -> None:
    shifted = [(lat + 0.01, lon) for lat, lon in SMALL_SQUARE]
    result = OrthogonalPipeline().process(_kml(SMALL_SQUARE, shifted), "Lots", {"step_meters": 15.0})
    assert result["success"]
    assert result["count"] == 10
    assert result["metadata"]["total_rings"] == 2
    assert len(result["csv"].splitlines()) == 11


def test_violations_are_summed_over_rings() -> None:
    shifted = [(lat + 0.01, lon) for lat, lon in SMALL_SQUARE]
    result = orthogonalize_boundary(
        _kml(SMALL_SQUARE, shifted), "Lots", "FORA", 15.0, use_robust_outside=True, offset_meters=5.0
    )
    assert result["success"]
    assert result["violations"] == 0
    assert [r["violations"] for r in result["metadata"]["rings"]] == [0, 0]


def test_single_point_ring_is_skipped() -> None:
    result = OrthogonalPipeline().process(_kml([(1.0, 2.0)], SMALL_SQUARE), "Lots", {"step_meters": 15.0})
    assert result["success"]
    assert result["metadata"]["total_rings"] == 2
    assert result["metadata"]["processed_rings"] == 1
    assert "2.0000000000,1.0000000000,0" not in result["kml"]


@pytest.mark.parametrize("options, message", [
    ({"step_meters": 0}, "step_meters"),
    ({"step_meters": -3}, "step_meters"),
    ({"offset_meters": -1}, "offset_meters"),
    ({"mode": "sideways"}, "Unknown boundary mode"),
    ({"step_meters": "abc"}, "Invalid options"),
])
def test_invalid_options_fail(options, message) -> None:
    result = OrthogonalPipeline().process(_kml(SMALL_SQUARE), "Lot", options)
    assert result["success"] is False
    assert message in result["error"]


def test_document_errors_are_reported() -> None:
    result = OrthogonalPipeline().process("<kml><Document/></kml>", "Lot", None)
    assert result == {"success": False, "error": "document has no coordinates"}

    result = OrthogonalPipeline().process(_kml(SMALL_SQUARE).replace("-46.63,", "x,", 1), "Lot", None)
    assert result["success"] is False
    assert "Invalid coordinate token" in result["error"]


def test_available_options_describe_modes() -> None:
    options = OrthogonalPipeline().get_available_options()
    assert options["mode"]["options"] == ["inside", "outside"]
    assert set(options) == {"mode", "step_meters", "robust_outside", "offset_meters", "jog_threshold_meters"}


@pytest.mark.parametrize("mode, robust", [("inside", False), ("outside", False), ("outside", True)])
def test_unclosed_coordinate_list_comes_back_closed(mode, robust) -> None:
    result = OrthogonalPipeline().process(
        _kml(SMALL_SQUARE[:-1]), "Lot", {"mode": mode, "step_meters": 15.0, "robust_outside": robust}
    )
    assert result["success"]
    points = parse_coordinates(node_text(coordinate_nodes(parse_boundary_document(result["kml"]))[0]))
    _assert_orthogonal_ring(points)
    assert result["metadata"]["rings"][0]["quality"]["closed"]


def test_open_diamond_staircases_its_closing_edge() -> None:
    closed = OrthogonalPipeline().process_ring(DIAMOND, {"step_meters": 15.0})
    opened = OrthogonalPipeline().process_ring(DIAMOND[:-1], {"step_meters": 15.0})
    assert opened.points == closed.points


@pytest.mark.parametrize("flag, expected", [("false", None), ("0", None), (False, None), ("true", 0), (1, 0)])
def test_robust_outside_flag_is_parsed(flag, expected) -> None:
    result = OrthogonalPipeline().process(
        _kml(SMALL_SQUARE), "Lot", {"mode": "outside", "step_meters": 15.0, "robust_outside": flag}
    )
    assert result["success"]
    assert result["violations"] == expected
    assert result["metadata"]["options"]["robust_outside"] is (expected is not None)


def test_robust_outside_flag_must_be_boolean() -> None:
    result = OrthogonalPipeline().process(_kml(SMALL_SQUARE), "Lot", {"robust_outside": "maybe"})
    assert result["success"] is False
    assert "robust_outside must be a boolean" in result["error"]
