"""
Catalog of NEXUS / Global Entry enrollment centers.

Код центра совпадает с суффиксом id элементов на странице планировщика.
"""

from __future__ import annotations

from enum import Enum


class Location(str, Enum):
    # ME
    CALAIS = "US00"
    HOULTON = "US01"
    # MI
    DETROIT = "US10"
    DETROIT_NEXUS_FAST = "US11"
    PORT_HURON = "US12"
    SAULT_STE_MARIE = "US13"
    # MN
    INTERNATIONAL_FALLS = "US20"
    WARROAD = "US21"
    # MT
    SWEETGRASS = "US30"
    # NY
    CHAMPLAIN = "US40"
    NIAGARA_FALLS_EC = "US41"
    NIAGARA_FALLS_NEXUS = "US42"
    OGDENSBURG = "US43"
    # ND
    PEMBINA = "US50"
    # VT
    DERBY_LINE = "US60"
    # WA
    BLAINE = "US70"
    # ON
    FORT_ERIE = "CA00"
    LANSDOWNE = "CA01"

    @property
    def code(self) -> str:
        return self.value

    @property
    def display_name(self) -> str:
        return self.name.replace("_", " ").title()

    @classmethod
    def parse(cls, text: str) -> "Location":
        """Accept a center code (``US30``) or a name (``sweetgrass``, ``Port Huron``)."""
        raw = text.strip()
        key = raw.upper().replace(" ", "_").replace("-", "_")
        for location in cls:
            if location.value == key or location.name == key:
                return location
        raise ValueError(f"Unknown enrollment center: {raw!r}")


__all__ = ["Location"]
