from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.endpoints import boundary

app = FastAPI()
app.include_router(boundary.router, prefix="/api/boundary")
client = TestClient(app)

SQUARE_KML = (
    '<kml xmlns="http://www.opengis.net/kml/2.2"><Placemark><name>Lot</name>'
    "<Polygon><outerBoundaryIs><LinearRing><coordinates>"
    "-46.63,-23.55,0 -46.629,-23.55,0 -46.629,-23.549,0 -46.63,-23.549,0 -46.63,-23.55,0"
    "</coordinates></LinearRing></outerBoundaryIs></Polygon></Placemark></kml>"
)


def test_orthogonalize_returns_document_and_table() -> None:
    response = client.post(
        "/api/boundary/orthogonalize",
        json={"kml_text": SQUARE_KML, "output_name": "Lot 3", "mode": "inside", "step_meters": 15},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["point_count"] == 5
    assert body["violations"] is None
    assert "<name>Lot 3</name>" in body["kml"]
    assert body["csv"].startswith("Longitude,Latitude\n")


def test_robust_outside_reports_violations() -> None:
    response = client.post(
        "/api/boundary/orthogonalize",
        json={"kml_text": SQUARE_KML, "mode": "outside", "step_meters": 15, "robust_outside": True, "offset_meters": 5},
    )
    body = response.json()
    assert body["status"] == "success"
    assert body["violations"] == 0
    assert "orthogonal_boundary" in body["kml"]


def test_pipeline_errors_come_back_as_error_status() -> None:
    response = client.post("/api/boundary/orthogonalize", json={"kml_text": "<kml/>"})
    assert response.status_code == 200
    assert response.json() == {
        "status": "error",
        "error": "document has no coordinates",
        "kml": None,
        "csv": None,
        "point_count": None,
        "violations": None,
        "metadata": None,
    }


def test_request_validation() -> None:
    assert client.post("/api/boundary/orthogonalize", json={"kml_text": SQUARE_KML, "step_meters": 0}).status_code == 422
    assert client.post("/api/boundary/orthogonalize", json={"kml_text": ""}).status_code == 422
    assert client.post("/api/boundary/orthogonalize", json={}).status_code == 422


def test_download_names_file_after_point_count() -> None:
    response = client.post(
        "/api/boundary/orthogonalize/download",
        json={"kml_text": SQUARE_KML, "output_name": "Lot 3", "step_meters": 15},
    )
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/vnd.google-earth.kml+xml")
    assert response.headers["content-disposition"] == (
        "attachment; filename=\"Lot 3_5.kml\"; filename*=UTF-8''Lot%203_5.kml"
    )
    assert response.text.startswith("<?xml")


def test_download_rejects_bad_document() -> None:
    response = client.post("/api/boundary/orthogonalize/download", json={"kml_text": "<kml>"})
    assert response.status_code == 400
    assert "Malformed" in response.json()["detail"]


def test_options() -> None:
    response = client.get("/api/boundary/options")
    assert response.status_code == 200
    options = response.json()["options"]
    assert options["mode"]["options"] == ["inside", "outside"]
    assert options["step_meters"]["default"] > 0


def test_download_accepts_names_outside_latin1() -> None:
    response = client.post(
        "/api/boundary/orthogonalize/download",
        json={"kml_text": SQUARE_KML, "output_name": 'Lote "東"', "step_meters": 15},
    )
    assert response.status_code == 200
    assert response.headers["content-disposition"] == (
        "attachment; filename=\"Lote __5.kml\"; filename*=UTF-8''Lote%20%E6%9D%B1_5.kml"
    )
    assert '<name>Lote "東"</name>' in response.content.decode("utf-8")
