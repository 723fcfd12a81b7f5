"""Per-activity layering tables.

Each table lists temperature bands coldest first; the first band whose
`max_temp_exclusive` is above the felt temperature wins, and a band with no
bound catches everything warmer. Weather rules and fixed items are appended
after the band items, in table order.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from wearplan.backend.models import Activity, LayerItem

WIND_THRESHOLD_MPH = 15
RAIN_THRESHOLD_PCT = 30

BASE = 'Base Layer'
MID = 'Mid Layer'
OUTER = 'Outer Layer'
ACCESSORIES = 'Accessories'
SAFETY = 'Safety'


@dataclass(frozen=True)
class TempBand:
    max_temp_exclusive: Optional[float]
    items: Tuple[LayerItem, ...]


@dataclass(frozen=True)
class WeatherRule:
    trigger: str  # 'wind', 'rain' or 'wind_or_rain'
    items: Tuple[LayerItem, ...]


@dataclass(frozen=True)
class LayerTable:
    bands: Tuple[TempBand, ...]
    weather_rules: Tuple[WeatherRule, ...] = ()
    fixed_items: Tuple[LayerItem, ...] = ()


def _items(*rows: Tuple[str, str, str]) -> Tuple[LayerItem, ...]:
    return tuple(LayerItem(category=c, item=i, rationale=r) for c, i, r in rows)


RUN = LayerTable(
    bands=(
        TempBand(32, _items(
            (BASE, 'Thermal long-sleeve top', 'Cold protection'),
            (BASE, 'Thermal tights', 'Leg warmth'),
            (MID, 'Light insulated vest', 'Core warmth'),
            (ACCESSORIES, 'Running gloves', 'Hand protection'),
            (ACCESSORIES, 'Headband or beanie', 'Ear warmth'),
        )),
        TempBand(50, _items(
            (BASE, 'Long-sleeve tech shirt', 'Moisture wicking'),
            (BASE, 'Running tights or pants', 'Leg comfort'),
            (ACCESSORIES, 'Light gloves', 'Hand warmth'),
        )),
        TempBand(65, _items(
            (BASE, 'Short-sleeve tech shirt', 'Breathability'),
            (BASE, 'Running shorts or capris', 'Mobility'),
        )),
        TempBand(None, _items(
            (BASE, 'Lightweight singlet', 'Maximum cooling'),
            (BASE, 'Running shorts', 'Comfort'),
            (ACCESSORIES, 'Visor or hat', 'Sun protection'),
        )),
    ),
    weather_rules=(
        WeatherRule('wind', _items((OUTER, 'Windbreaker jacket', 'Wind protection'))),
        WeatherRule('rain', _items((OUTER, 'Waterproof running jacket', 'Rain protection'))),
    ),
)

MOUNTAIN_BIKE = LayerTable(
    bands=(
        TempBand(40, _items(
            (BASE, 'Thermal long-sleeve jersey', 'Cold protection'),
            (BASE, 'Padded thermal bib tights', 'Comfort and warmth'),
            (MID, 'Softshell jacket', 'Insulation'),
            (ACCESSORIES, 'Winter cycling gloves', 'Hand warmth'),
            (ACCESSORIES, 'Thermal headband', 'Ear protection'),
        )),
        TempBand(60, _items(
            (BASE, 'Long-sleeve MTB jersey', 'Trail protection'),
            (BASE, 'Padded shorts with knee warmers', 'Flexibility'),
            (ACCESSORIES, 'Light gloves', 'Grip and protection'),
        )),
        TempBand(None, _items(
            (BASE, 'Short-sleeve MTB jersey', 'Breathability'),
            (BASE, 'Padded shorts', 'Comfort'),
            (ACCESSORIES, 'Full-finger gloves', 'Trail protection'),
        )),
    ),
    weather_rules=(
        WeatherRule('rain', _items((OUTER, 'Waterproof MTB jacket', 'Weather protection'))),
    ),
    fixed_items=_items(
        (SAFETY, 'Helmet', 'Essential safety'),
        (SAFETY, 'Eye protection', 'Debris protection'),
    ),
)

ROAD_BIKE = LayerTable(
    bands=(
        TempBand(45, _items(
            (BASE, 'Thermal cycling jersey', 'Warmth'),
            (BASE, 'Thermal bib tights', 'Leg warmth'),
            (MID, 'Wind vest', 'Core protection'),
            (ACCESSORIES, 'Winter cycling gloves', 'Hand warmth'),
            (ACCESSORIES, 'Thermal cap under helmet', 'Head warmth'),
        )),
        TempBand(65, _items(
            (BASE, 'Long-sleeve cycling jersey', 'Comfort'),
            (BASE, 'Bib shorts with leg warmers', 'Adaptability'),
            (ACCESSORIES, 'Light gloves', 'Grip'),
        )),
        TempBand(None, _items(
            (BASE, 'Short-sleeve cycling jersey', 'Cooling'),
            (BASE, 'Bib shorts', 'Comfort'),
            (ACCESSORIES, 'Cycling cap', 'Sun protection'),
        )),
    ),
    weather_rules=(
        WeatherRule('wind', _items((OUTER, 'Wind jacket', 'Aerodynamics'))),
        WeatherRule('rain', _items((OUTER, 'Waterproof cycling jacket', 'Rain protection'))),
    ),
    fixed_items=_items(
        (SAFETY, 'Helmet', 'Essential safety'),
        (SAFETY, 'Cycling glasses', 'Eye protection'),
    ),
)

DOWNHILL_SKI = LayerTable(
    bands=(
        TempBand(20, _items(
            (BASE, 'Heavyweight thermal top', 'Extreme cold'),
            (BASE, 'Heavyweight thermal bottoms', 'Leg warmth'),
            (MID, 'Insulated ski jacket', 'Core warmth'),
            (OUTER, 'Waterproof ski pants', 'Snow protection'),
            (ACCESSORIES, 'Insulated ski gloves', 'Hand warmth'),
            (ACCESSORIES, 'Balaclava or neck gaiter', 'Face protection'),
        )),
        TempBand(None, _items(
            (BASE, 'Midweight thermal top', 'Moisture management'),
            (BASE, 'Midweight thermal bottoms', 'Comfort'),
            (MID, 'Lightweight insulated jacket', 'Warmth'),
            (OUTER, 'Waterproof ski pants', 'Snow protection'),
            (ACCESSORIES, 'Ski gloves', 'Hand protection'),
            (ACCESSORIES, 'Neck gaiter', 'Versatility'),
        )),
    ),
    fixed_items=_items(
        (SAFETY, 'Ski helmet', 'Essential safety'),
        (SAFETY, 'Ski goggles', 'Vision protection'),
    ),
)

BACKCOUNTRY_SKI = LayerTable(
    bands=(
        TempBand(20, _items(
            (BASE, 'Merino wool top', 'Temperature regulation'),
            (BASE, 'Merino wool bottoms', 'Warmth and breathability'),
            (MID, 'Lightweight down jacket', 'Packable warmth'),
            (OUTER, 'Hardshell jacket', 'Weather protection'),
            (OUTER, 'Hardshell pants', 'Snow protection'),
        )),
        TempBand(None, _items(
            (BASE, 'Lightweight merino top', 'Breathability'),
            (BASE, 'Lightweight merino bottoms', 'Comfort'),
            (MID, 'Fleece or softshell', 'Active insulation'),
            (OUTER, 'Softshell pants', 'Mobility'),
        )),
    ),
    fixed_items=_items(
        (ACCESSORIES, 'Lightweight gloves', 'Hand warmth while touring'),
        (ACCESSORIES, 'Beanie or headband', 'Head warmth'),
        (SAFETY, 'Ski helmet', 'Safety'),
        (SAFETY, 'Ski goggles + sunglasses', 'Variable conditions'),
    ),
)

NORDIC_SKI = LayerTable(
    bands=(
        TempBand(20, _items(
            (BASE, 'Thermal racing suit or top/bottom', 'Warmth'),
            (MID, 'Light vest', 'Core warmth'),
            (ACCESSORIES, 'Insulated gloves', 'Hand warmth'),
            (ACCESSORIES, 'Headband or light beanie', 'Ear protection'),
        )),
        TempBand(40, _items(
            (BASE, 'XC ski suit or jersey/tights', 'Aerodynamics'),
            (ACCESSORIES, 'Light gloves', 'Grip and warmth'),
            (ACCESSORIES, 'Headband', 'Ear warmth'),
        )),
        TempBand(None, _items(
            (BASE, 'Lightweight XC top', 'Cooling'),
            (BASE, 'Lightweight XC tights', 'Mobility'),
            (ACCESSORIES, 'Thin gloves', 'Pole grip'),
        )),
    ),
    weather_rules=(
        WeatherRule('wind_or_rain', _items((OUTER, 'Wind vest or light shell', 'Weather protection'))),
    ),
    fixed_items=_items(
        (ACCESSORIES, 'Sunglasses or light goggles', 'Eye protection'),
    ),
)

LAYER_TABLES = {
    Activity.RUN: RUN,
    Activity.MOUNTAIN_BIKE: MOUNTAIN_BIKE,
    Activity.ROAD_BIKE: ROAD_BIKE,
    Activity.DOWNHILL_SKI: DOWNHILL_SKI,
    Activity.BACKCOUNTRY_SKI: BACKCOUNTRY_SKI,
    Activity.NORDIC_SKI: NORDIC_SKI,
}
