import json

import pytest

from avisscore.core.display import (DEFAULT_SPEC_ICON, PLACEHOLDER_IMAGE, discount_percent,
                                    first_image, is_price_error, normalize_image_url,
                                    parse_faq, parse_specs, pick_spec_icon, split_spec_line,
                                    to_score10)


@pytest.mark.parametrize("rating, expected", [
    (None, "8.5"),
    (0, "0.0"),
    (2.5, "5.0"),
    (4.6, "9.2"),
    (5, "10.0"),
    (5.5, "5.5"),
    (8.7, "8.7"),
    (10, "10.0"),
    (42, "10.0"),
    (-3, "0.0"),
])
def test_to_score10(rating, expected):
    assert to_score10(rating) == expected


def test_to_score10_always_one_decimal_in_range():
    for raw in [x / 4 for x in range(-8, 60)]:
        rendered = to_score10(raw)
        whole, decimals = rendered.split(".")
        assert len(decimals) == 1
        assert 0.0 <= float(rendered) <= 10.0


def test_normalize_image_url_rewrites_lossy_host():
    url = "https://m.media-amazon.com/images/I/71abc._AC_SL1500_.webp"
    assert normalize_image_url(url) == "https://m.media-amazon.com/images/I/71abc._AC_SL1500_.jpg"


def test_normalize_image_url_keeps_query_string():
    url = "https://m.media-amazon.com/images/I/71abc.webp?v=2"
    assert normalize_image_url(url) == "https://m.media-amazon.com/images/I/71abc.jpg?v=2"


@pytest.mark.parametrize("url", [
    "https://cdn.example.com/photo.webp",
    "https://m.media-amazon.com/images/I/71abc.png",
    "https://images.samsung.com/s24.jpg",
])
def test_normalize_image_url_passes_other_urls(url):
    assert normalize_image_url(url) == url


@pytest.mark.parametrize("url", [None, "", "   "])
def test_normalize_image_url_placeholder(url):
    assert normalize_image_url(url) == PLACEHOLDER_IMAGE


def test_first_image():
    assert first_image(["a.png", "b.png"]) == "a.png"
    assert first_image(json.dumps(["c.png"])) == "c.png"
    assert first_image("d.png") == "d.png"
    assert first_image([]) is None


def test_split_spec_line():
    assert split_spec_line("Écran: 6,1 pouces") == ("Écran", "6,1 pouces")
    assert split_spec_line("Heure: 10:30") == ("Heure", "10:30")
    assert split_spec_line("Garantie") == ("Garantie", "—")
    assert split_spec_line("Poids:  ") == ("Poids", "—")
    assert split_spec_line(": 12 Go") == ("Info", "12 Go")


@pytest.mark.parametrize("label, icon", [
    ("Écran", "fa-mobile-screen-button"),
    ("Display", "fa-mobile-screen-button"),
    ("PROCESSEUR", "fa-microchip"),
    ("Stockage SSD", "fa-hard-drive"),
    ("RAM", "fa-memory"),
    ("Mémoire vive", "fa-memory"),
    ("Battery life", "fa-battery-full"),
    ("Caméra arrière", "fa-camera"),
    ("Poids", "fa-weight-hanging"),
    ("Weight", "fa-weight-hanging"),
    ("Programme", DEFAULT_SPEC_ICON),
    ("Couleur", DEFAULT_SPEC_ICON),
])
def test_pick_spec_icon(label, icon):
    assert pick_spec_icon(label) == icon


def test_price_error_flag():
    assert discount_percent(100, 250) == pytest.approx(60.0)
    assert is_price_error(100, 250) is True
    assert discount_percent(150, 250) == pytest.approx(40.0)
    assert is_price_error(150, 250) is False
    assert is_price_error(125, 250) is True
    assert is_price_error(0, 250) is False
    assert is_price_error(100, None) is False


def test_parse_specs():
    assert parse_specs(["A: 1", "B: 2"]) == ["A: 1", "B: 2"]
    assert parse_specs('["A: 1"]') == ["A: 1"]
    assert parse_specs("A: 1") == ["A: 1"]
    assert parse_specs(None) == []


def test_parse_faq_variants():
    from_string = parse_faq('[{"q": "Q1", "a": "A1"}]')
    from_object = parse_faq({"question": "Q2", "answer": "A2"})
    from_array = parse_faq([{"question": "Q3"}, "ignored"])

    assert [(f.question, f.answer) for f in from_string] == [("Q1", "A1")]
    assert [(f.question, f.answer) for f in from_object] == [("Q2", "A2")]
    assert [(f.question, f.answer) for f in from_array] == [("Q3", "Réponse non disponible")]


@pytest.mark.parametrize("raw", [None, "", "not json", '"just a string"', 42])
def test_parse_faq_invalid_payloads(raw):
    assert parse_faq(raw) == []


def test_parse_faq_loose_values():
    faqs = parse_faq('[{"question": "Autonomie ?", "answer": 20}, '
                     '{"q": "Étanche ?", "a": null}, '
                     '{"question": {"fr": "Poids ?"}, "answer": ["180 g"]}, '
                     '{"q": 5, "a": 4.5}]')

    assert [(f.question, f.answer) for f in faqs] == [
        ("Autonomie ?", "20"),
        ("Étanche ?", "Réponse non disponible"),
        ("Question sans titre", "Réponse non disponible"),
        ("5", "4.5"),
    ]
