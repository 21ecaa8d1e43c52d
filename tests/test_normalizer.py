import logging

import pytest

from map_platform.core import (
    ExportOptions,
    InvalidPlace,
    MissingPrincipal,
    MissingProject,
    PanoramaMedia,
    TourMedia,
)
from map_platform.services.normalizer import DEFAULT_VECTOR_STYLE_URL, ProjectNormalizer
from map_platform.services.polyline import encode


def _minimal(**extra):
    document = {
        "title": "Demo",
        "principal": {"name": "Home", "latitude": 1, "longitude": 2, "footerInfo": {}},
        "secondaries": [],
    }
    document.update(extra)
    return document


def _secondary(**extra):
    place = {"_id": "s1", "name": "Stop", "latitude": 0.5, "longitude": 0.5}
    place.update(extra)
    return place


def test_missing_project(normalizer):
    with pytest.raises(MissingProject):
        normalizer.normalize(None)


def test_missing_principal(normalizer):
    with pytest.raises(MissingPrincipal):
        normalizer.normalize({})


def test_minimal_document(normalizer):
    document = normalizer.normalize(_minimal()).as_dict()

    assert document["project"]["title"] == "Demo"
    assert document["principal"]["name"] == "Home"
    assert document["principal"]["category"] == "Principal"
    assert document["principal"]["lat"] == 1.0
    assert document["principal"]["lon"] == 2.0
    assert document["secondaries"] == []
    assert document["generator"] == {"name": "test-export", "version": "9.9.9"}
    assert document["generatedAt"].endswith("+00:00")


def test_principal_without_secondaries_key(normalizer):
    document = normalizer.normalize({"principal": {"name": "Home", "latitude": 1, "longitude": 2}})

    assert document.secondaries == []


def test_route_is_decoded_into_linestring(normalizer):
    doc = _minimal(secondaries=[_secondary(routesFromBase=[encode([(0, 0), (0, 1)])])])

    secondary = normalizer.normalize(doc).as_dict()["secondaries"][0]

    assert len(secondary["routes"]) == 1
    route = secondary["routes"][0]
    assert route["geometry"]["type"] == "LineString"
    assert route["geometry"]["coordinates"] == [[0.0, 0.0], [1.0, 0.0]]
    assert route["profile"] == "driving"


def test_routes_with_fewer_than_two_points_are_dropped(normalizer):
    doc = _minimal(secondaries=[_secondary(routesFromBase=[encode([(0, 0)]), "not a polyline"])])

    secondary = normalizer.normalize(doc).secondaries[0]

    assert secondary.routes == []


def test_profiles_follow_route_index_with_fallback(normalizer):
    line = encode([(0, 0), (0, 1)])
    doc = _minimal(secondaries=[_secondary(routesFromBase=[line, line, line])])
    options = ExportOptions(profiles=("walking", "cycling"))

    routes = normalizer.normalize(doc, options).secondaries[0].routes

    assert [route.profile for route in routes] == ["walking", "cycling", "walking"]


def test_footer_text_is_kept_and_numbers_extracted(normalizer):
    doc = _minimal(
        secondaries=[
            _secondary(
                routesFromBase=[encode([(0, 0), (0, 1)])],
                footerInfo={"location": "Old town", "distance": "12.5 KM", "time": "1 h 20 mins"},
            )
        ]
    )

    secondary = normalizer.normalize(doc).as_dict()["secondaries"][0]

    assert secondary["footerInfo"] == {
        "location": "Old town",
        "distanceText": "12.5 KM",
        "timeText": "1 h 20 mins",
    }
    assert secondary["routes"][0]["distance_m"] == 12500.0
    assert secondary["routes"][0]["duration_s"] == 4800.0


def test_clock_time_and_grouped_distance(normalizer):
    line = encode([(0, 0), (0, 1)])
    doc = _minimal(
        secondaries=[_secondary(routesFromBase=[line], footerInfo={"distance": "1,200 m", "time": "01:01"})]
    )

    route = normalizer.normalize(doc).secondaries[0].routes[0]

    assert route.distance_m == 1200.0
    assert route.duration_s == 3660.0


def test_principal_footer_only_has_location(normalizer):
    doc = _minimal()
    doc["principal"]["footerInfo"] = {"location": "Harbour", "distance": "3 km"}

    footer = normalizer.normalize(doc).as_dict()["principal"]["footerInfo"]

    assert footer == {"location": "Harbour"}


def test_media_union(normalizer):
    doc = _minimal(
        secondaries=[
            _secondary(_id="a", virtualtour="https://img.example.com/a.jpg"),
            _secondary(_id="b", tourUrl="https://tour.example.com/b"),
            _secondary(_id="c"),
        ]
    )

    a, b, c = normalizer.normalize(doc).secondaries

    assert a.media == PanoramaMedia("https://img.example.com/a.jpg")
    assert b.media == TourMedia("https://tour.example.com/b")
    assert c.media is None
    assert a.as_dict()["media"] == {"type": "panorama", "panoramaUrl": "https://img.example.com/a.jpg"}
    assert b.as_dict()["media"] == {"type": "tour", "tourUrl": "https://tour.example.com/b"}


def test_both_media_prefers_panorama(normalizer, caplog):
    doc = _minimal()
    doc["principal"].update(virtualtour="https://img.example.com/p.jpg", tourUrl="https://tour.example.com/p")

    with caplog.at_level(logging.WARNING):
        principal = normalizer.normalize(doc).principal

    assert principal.media == PanoramaMedia("https://img.example.com/p.jpg")
    assert "both a panorama and a tour" in caplog.text


@pytest.mark.parametrize(
    "override, stored, default, expected",
    [
        ("https://style.example.com/override.json", "https://style.example.com/stored.json", "satellite",
         "https://style.example.com/override.json"),
        (None, "https://style.example.com/stored.json", "satellite", "https://style.example.com/stored.json"),
        (None, None, "satellite", "satellite"),
        (None, "", None, DEFAULT_VECTOR_STYLE_URL),
    ],
)
def test_style_resolution(override, stored, default, expected):
    normalizer = ProjectNormalizer(default_style=default)
    doc = _minimal(styleURL=stored)

    document = normalizer.normalize(doc, ExportOptions(style_url=override))

    assert document.project.style_url == expected


@pytest.mark.parametrize(
    "latitude, longitude",
    [(91, 0), (0, -181), (None, 0), ("north", 0), (float("nan"), 0)],
)
def test_invalid_coordinates_fail_fast(normalizer, latitude, longitude):
    doc = _minimal()
    doc["principal"].update(latitude=latitude, longitude=longitude)

    with pytest.raises(InvalidPlace):
        normalizer.normalize(doc)


def test_model_and_logo(normalizer, project_document):
    document = normalizer.normalize(project_document).as_dict()

    assert document["project"]["logo"] == {"src": "https://cdn.example.com/brand/logo.png", "alt": "Demo Tour"}
    assert document["secondaries"][0]["model3d"] == {
        "url": "https://cdn.example.com/models/chateau.glb",
        "useAsMarker": False,
        "scale": 2.0,
        "rotation": [0.0, 1.57, 0.0],
        "altitude": 10.0,
    }
    assert document["principal"]["model3d"] is None
    assert document["secondaries"][0]["gallery"] == []


def test_unknown_category_becomes_other(normalizer):
    doc = _minimal(secondaries=[_secondary(category="Museum"), _secondary(_id="s2")])

    first, second = normalizer.normalize(doc).secondaries

    assert first.category == "Other"
    assert second.category == "Secondary"


def test_export_options_from_request_body():
    options = ExportOptions.from_mapping(
        {"inlineData": True, "mirrorImagesLocally": False, "styleURL": "https://s.example.com", "profiles": ["walking"]}
    )

    assert options == ExportOptions(
        inline_data=True,
        inline_assets=False,
        include_local_libs=True,
        style_url="https://s.example.com",
        profiles=("walking",),
    )


@pytest.mark.parametrize(
    "payload",
    [{"inlineData": "yes"}, {"profiles": "driving"}, {"profiles": [""]}, {"styleURL": 3}, ["inlineData"]],
)
def test_export_options_reject_bad_types(payload):
    from map_platform.core import InvalidOptions

    with pytest.raises(InvalidOptions):
        ExportOptions.from_mapping(payload)


@pytest.mark.parametrize("entry", [None, "s1", 42, ["a"]])
def test_non_object_secondary_is_invalid(normalizer, entry):
    with pytest.raises(InvalidPlace):
        normalizer.normalize(_minimal(secondaries=[_secondary(), entry]))


@pytest.mark.parametrize("principal", ["home", ["a"], 7])
def test_non_object_principal_is_missing(normalizer, principal):
    with pytest.raises(MissingPrincipal):
        normalizer.normalize(_minimal(principal=principal))
