import os

from dotenv import load_dotenv

load_dotenv()  # .env next to the working directory, if any


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


# Interior edge of one storage cube, in inches
CUBE_SIZE = _float_env("CUBEPACKER_CUBE_SIZE", 12.8)
CUBE_AREA = CUBE_SIZE * CUBE_SIZE

GRID_PRECISION = _float_env("CUBEPACKER_GRID_PRECISION", 0.1)

# A footprint side above this is excluded unless fit_oversized is requested
OVERSIZED_THRESHOLD = _float_env("CUBEPACKER_OVERSIZED_THRESHOLD", CUBE_SIZE)

MAX_GROUP_AREA_RATIO = _float_env("CUBEPACKER_MAX_GROUP_AREA_RATIO", 0.95)
MAX_GROUP_AREA = CUBE_AREA * MAX_GROUP_AREA_RATIO

# Used for boxes whose dimensions were never resolved upstream
DEFAULT_DIMENSIONS = (12.8, 12.8, 1.8)

LOG_FILE = os.getenv("CUBEPACKER_LOG_FILE", "")
LOG_LEVEL = os.getenv("CUBEPACKER_LOG_LEVEL", "INFO")

PACKER_DEBUG_FLOW = os.getenv("PACKER_DEBUG_FLOW", "0") == "1"
