from __future__ import annotations

import pytest

from nexus_watch.locations import Location


@pytest.mark.parametrize(
    "text, expected",
    [
        ("US30", Location.SWEETGRASS),
        ("us30", Location.SWEETGRASS),
        ("SWEETGRASS", Location.SWEETGRASS),
        ("port huron", Location.PORT_HURON),
        ("Sault-Ste-Marie", Location.SAULT_STE_MARIE),
        (" CA01 ", Location.LANSDOWNE),
    ],
)
def test_parse_accepts_codes_and_names(text: str, expected: Location) -> None:
    assert Location.parse(text) is expected


def test_parse_rejects_unknown_center() -> None:
    with pytest.raises(ValueError, match="Unknown enrollment center"):
        Location.parse("US99")


def test_catalog_codes_are_unique() -> None:
    codes = [loc.code for loc in Location]
    assert len(codes) == len(set(codes)) == 18


def test_display_name() -> None:
    assert Location.NIAGARA_FALLS_NEXUS.display_name == "Niagara Falls Nexus"
