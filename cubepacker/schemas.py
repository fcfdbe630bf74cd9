from typing import Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


def to_camel(string: str) -> str:
    """Helper function to convert snake_case to camelCase"""
    parts = string.split("_")
    return parts[0] + "".join(word.capitalize() for word in parts[1:])


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ----Request-----
class GameDimensions(CamelModel):
    length: Optional[float] = None
    width: Optional[float] = None
    depth: Optional[float] = Field(default=None, validation_alias=AliasChoices("depth", "height"))
    missing_dimensions: bool = False


class PackingGame(CamelModel):
    id: str
    name: str = ""
    version_name: Optional[str] = None
    game_id: Optional[str] = None
    version_id: Optional[str] = None
    dimensions: Optional[GameDimensions] = None
    forced_orientation: Optional[Literal["horizontal", "vertical"]] = None
    is_expansion: bool = False
    base_game_id: Optional[str] = None
    family_ids: list[str] = []
    categories: list[str] = []
    families: list[str] = []
    mechanics: list[str] = []
    attributes: dict[str, Any] = {}

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


class PackingConfig(CamelModel):
    primary_orientation: Literal["horizontal", "vertical"] = "vertical"
    lock_rotation: bool = False
    optimize_space: bool = False
    respect_sort_order: bool = False
    fit_oversized: bool = False
    group_expansions: bool = False
    group_series: bool = False


class SortRuleSchema(CamelModel):
    field: str
    direction: Literal["asc", "desc"] = Field(
        default="asc", validation_alias=AliasChoices("direction", "order")
    )


class VersionRef(CamelModel):
    game: Optional[int] = None
    version: Optional[int] = None

    @property
    def key(self) -> Optional[str]:
        if self.game is None or self.version is None:
            return None
        return f"{self.game}-{self.version}"


class StackingOverride(VersionRef):
    orientation: Optional[str] = None


class DimensionOverride(VersionRef):
    length: Optional[float] = None
    width: Optional[float] = None
    depth: Optional[float] = Field(default=None, validation_alias=AliasChoices("depth", "height"))


class PackingOverrides(CamelModel):
    excluded_versions: list[VersionRef] = []
    stacking_overrides: list[StackingOverride] = []
    dimension_overrides: list[DimensionOverride] = []


class PackingRequest(CamelModel):
    games: list[PackingGame]
    config: PackingConfig = Field(default_factory=PackingConfig)
    sort_rules: list[SortRuleSchema] = []
    overrides: Optional[PackingOverrides] = None


# ----Response-----
class PositionOut(CamelModel):
    x: float
    y: float


class FootprintOut(CamelModel):
    x: float
    y: float


class PackedItemOut(CamelModel):
    id: str
    name: str
    position: PositionOut
    packed_footprint: FootprintOut
    actual_footprint: FootprintOut
    depth: float
    orientation: str
    oversized_x: bool = False
    oversized_y: bool = False
    missing_dimensions: bool = False


class CubeRowOut(CamelModel):
    y: float
    item_ids: list[str]
    width_used: float
    height_used: float


class CubeStatsOut(CamelModel):
    item_count: int
    area_used: float
    utilization_percent: float


class PackedCubeOut(CamelModel):
    id: int
    items: list[PackedItemOut]
    rows: list[CubeRowOut]
    stats: CubeStatsOut


class ExcludedItemOut(CamelModel):
    id: str
    name: str
    dimensions: GameDimensions


class StuffedItemOut(CamelModel):
    id: str
    name: str
    cube_id: int


class UnpackableItemOut(CamelModel):
    id: str
    name: str
    reason: str


class SummaryOut(CamelModel):
    total_items: int
    total_cubes: int
    avg_items_per_cube: float
    total_utilization: float
    missing_dimension_count: int = 0
    exceeding_capacity_count: int = 0


class PackingResult(CamelModel):
    cubes: list[PackedCubeOut]
    excluded_oversized_items: list[ExcludedItemOut] = []
    stuffed_oversized_items: list[StuffedItemOut] = []
    unpackable_items: list[UnpackableItemOut] = []
    summary: SummaryOut
