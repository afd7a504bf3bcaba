import pytest

from app.errors import UnknownSegment
from app.services.segment_catalog import DEFAULT_SEGMENTS, SegmentCatalog


@pytest.fixture
def catalog():
    return SegmentCatalog.default()


def test_owner_lookup_uses_exact_prefix(catalog):
    assert catalog.owner_of("sjc1-1700000000000").key == "sjc1"
    assert catalog.owner_of("sjc10-1700000000000").key == "sjc10"
    assert catalog.owner_of("tgnia1-5").key == "tgnia1"
    assert catalog.owner_of("atlantis1-5") is None


def test_unknown_segment_raises(catalog):
    with pytest.raises(UnknownSegment):
        catalog.get("sjc2")


def test_enabled_segments_filter_the_catalog():
    catalog = SegmentCatalog.default(["sjc1", "tgnia8"])
    assert len(catalog) == 2
    assert "tgnia8" in catalog
    assert "sjc3" not in catalog


def test_duplicate_keys_are_rejected():
    with pytest.raises(ValueError):
        SegmentCatalog([DEFAULT_SEGMENTS[0], DEFAULT_SEGMENTS[0]])


def test_segment_configuration(catalog):
    sjc1 = catalog.get("sjc1")
    assert sjc1.bounds.min_km == 5.212
    assert sjc1.bounds.max_km == 39.756
    assert sjc1.api_path == "/sjc-rpl-s1"

    assert catalog.get("seaus2").api_path == "/sea-us-rpl-s2"
    assert catalog.get("tgnia8").reject_zero_sentinel
    assert catalog.get("tgnia4").reject_zero_sentinel
    assert not catalog.get("tgnia2").reject_zero_sentinel
    assert catalog.get("tgnia9").display_name == "TGN-IA Segment 9 | Deep Water Bay - BU3"
