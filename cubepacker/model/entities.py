from __future__ import annotations

from dataclasses import dataclass, field, replace
from math import isfinite
from typing import Any, Dict, List, Optional, Tuple

from cubepacker.config import CUBE_SIZE, GRID_PRECISION

EPS = GRID_PRECISION * 0.5
AREA_EPS = 1e-6

HORIZONTAL = "horizontal"
VERTICAL = "vertical"
ORIENTATIONS = (HORIZONTAL, VERTICAL)


def normalize_orientation(value: Any) -> Optional[str]:
    return value if value in ORIENTATIONS else None


def other_orientation(orientation: str) -> str:
    return HORIZONTAL if orientation == VERTICAL else VERTICAL


@dataclass(frozen=True)
class Footprint:
    x: float
    y: float

    @property
    def area(self) -> float:
        return self.x * self.y

    def transposed(self) -> "Footprint":
        return Footprint(self.y, self.x)


@dataclass(frozen=True)
class Footprints:
    horizontal: Footprint
    vertical: Footprint

    def get(self, orientation: str) -> Footprint:
        return self.vertical if orientation == VERTICAL else self.horizontal


@dataclass
class Dimensions:
    length: Optional[float] = None
    width: Optional[float] = None
    depth: Optional[float] = None
    missing: bool = False

    def values(self) -> Tuple[Optional[float], Optional[float], Optional[float]]:
        return (self.length, self.width, self.depth)

    def is_valid(self) -> bool:
        return all(
            isinstance(v, (int, float)) and isfinite(v) and v > 0
            for v in self.values()
        )

    def is_unresolved(self) -> bool:
        """True when nothing usable was ever resolved (as opposed to bad data)."""
        return self.missing or all(not v for v in self.values())

    def sorted_desc(self) -> Tuple[float, float, float]:
        big, mid, small = sorted(self.values(), reverse=True)
        return big, mid, small


def calculate_both_orientations(dimensions: Dimensions) -> Tuple[Footprints, float]:
    """
    Resolve a box into its two candidate floor footprints.

    The longest side is the stacking depth; the other two form the footprint.
    Returns (footprints, depth).
    """
    depth, mid, small = dimensions.sorted_desc()
    horizontal = Footprint(max(mid, small), min(mid, small))
    return Footprints(horizontal=horizontal, vertical=horizontal.transposed()), depth


@dataclass
class Item:
    id: str
    name: str = ""
    version_name: Optional[str] = None
    game_id: Optional[str] = None
    version_id: Optional[str] = None
    dimensions: Optional[Dimensions] = None
    forced_orientation: Optional[str] = None
    is_expansion: bool = False
    base_game_id: Optional[str] = None
    family_ids: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    families: List[str] = field(default_factory=list)
    mechanics: List[str] = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)
    footprints: Optional[Footprints] = field(default=None, init=False)
    depth: float = field(default=0.0, init=False)
    primary_orientation: Optional[str] = field(default=None, init=False)
    exceeds_max_dimension: bool = field(default=False, init=False)
    unpackable_reason: Optional[str] = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.forced_orientation = normalize_orientation(self.forced_orientation)

    def resolve_footprints(self, primary_orientation: str, oversized_threshold: float) -> bool:
        """Compute footprints once. Returns False if the item cannot be packed."""
        if self.dimensions is None or not self.dimensions.is_valid():
            self.unpackable_reason = "invalid dimensions"
            return False
        if self.footprints is None:
            self.footprints, self.depth = calculate_both_orientations(self.dimensions)
        self.unpackable_reason = None
        self.primary_orientation = self.forced_orientation or primary_orientation
        fp = self.primary_footprint
        self.exceeds_max_dimension = fp.x > oversized_threshold or fp.y > oversized_threshold
        return True

    @property
    def primary_footprint(self) -> Optional[Footprint]:
        if self.footprints is None:
            return None
        return self.footprints.get(self.primary_orientation or VERTICAL)

    @property
    def area(self) -> float:
        fp = self.primary_footprint
        return fp.area if fp is not None else 0.0


@dataclass(eq=False)
class PlacedItem:
    item: Item
    x: float
    y: float
    width: float
    height: float
    actual_width: float
    actual_height: float
    depth: float
    orientation: str
    oversized_x: bool = False
    oversized_y: bool = False

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def top(self) -> float:
        return self.y + self.height

    @property
    def right(self) -> float:
        return self.x + self.width

    def state(self) -> Tuple:
        return (
            self.x,
            self.y,
            self.width,
            self.height,
            self.actual_width,
            self.actual_height,
            self.orientation,
            self.oversized_x,
            self.oversized_y,
        )

    def apply_state(self, state: Tuple) -> None:
        (
            self.x,
            self.y,
            self.width,
            self.height,
            self.actual_width,
            self.actual_height,
            self.orientation,
            self.oversized_x,
            self.oversized_y,
        ) = state

    def copy(self) -> "PlacedItem":
        return replace(self)


@dataclass
class CubeSnapshot:
    entries: List[Tuple[PlacedItem, Tuple]]
    occupied_area: float


@dataclass
class CubeRow:
    y: float
    items: List[PlacedItem]
    width_used: float
    height_used: float


@dataclass
class CubeStats:
    item_count: int
    area_used: float
    utilization_percent: float


@dataclass
class Cube:
    size: float = CUBE_SIZE
    items: List[PlacedItem] = field(default_factory=list)
    occupied_area: float = 0.0
    id: Optional[int] = None
    rows: List[CubeRow] = field(default_factory=list)
    stats: Optional[CubeStats] = None

    @property
    def capacity(self) -> float:
        return self.size * self.size

    def fits_area(self, area: float) -> bool:
        return self.occupied_area + area <= self.capacity + AREA_EPS

    def add(self, placed: PlacedItem) -> None:
        self.items.append(placed)
        self.occupied_area += placed.area

    def remove(self, placed: PlacedItem) -> int:
        for idx, candidate in enumerate(self.items):
            if candidate is placed:
                del self.items[idx]
                self.occupied_area -= placed.area
                return idx
        raise ValueError(f"item {placed.item.id} is not in this cube")

    def clear(self) -> None:
        self.items = []
        self.occupied_area = 0.0

    def recompute_occupied_area(self) -> float:
        self.occupied_area = sum(p.area for p in self.items)
        return self.occupied_area

    def snapshot(self) -> CubeSnapshot:
        return CubeSnapshot(
            entries=[(p, p.state()) for p in self.items],
            occupied_area=self.occupied_area,
        )

    def restore(self, snapshot: CubeSnapshot) -> None:
        self.items = []
        for placed, state in snapshot.entries:
            placed.apply_state(state)
            self.items.append(placed)
        self.occupied_area = snapshot.occupied_area

    def clone(self) -> "Cube":
        return Cube(
            size=self.size,
            items=[p.copy() for p in self.items],
            occupied_area=self.occupied_area,
            id=self.id,
        )

    def adopt(self, other: "Cube") -> None:
        """Take over the layout of a working copy."""
        self.items = other.items
        self.occupied_area = other.occupied_area


@dataclass
class PackingOptions:
    primary_orientation: str = VERTICAL
    lock_rotation: bool = False
    optimize_space: bool = False
    respect_sort_order: bool = False
    fit_oversized: bool = False
    group_expansions: bool = False
    group_series: bool = False

    def __post_init__(self) -> None:
        self.primary_orientation = normalize_orientation(self.primary_orientation) or VERTICAL


@dataclass(frozen=True)
class OrientationOption:
    x: float
    y: float
    label: str


def build_orientations(item: Item, primary_orientation: str, lock_rotation: bool) -> List[OrientationOption]:
    """Footprints to try for an item, preferred first."""
    fp = item.primary_footprint
    if fp is None:
        return []
    if item.forced_orientation:
        return [OrientationOption(fp.x, fp.y, item.forced_orientation)]
    primary = item.primary_orientation or primary_orientation
    options = [OrientationOption(fp.x, fp.y, primary)]
    if not lock_rotation and abs(fp.x - fp.y) > 0.01:
        options.append(OrientationOption(fp.y, fp.x, other_orientation(primary)))
    return options
