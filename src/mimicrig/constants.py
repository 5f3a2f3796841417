"""Shared constants and paths for MimicRig."""

from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
ASSETS_DIR = PROJECT_ROOT / "assets"
CONFIG_DIR = ASSETS_DIR / "config"
MAPPING_CONFIG_DIR = CONFIG_DIR / "mappings"

# Source bind-local bone lengths below this skip position retargeting
MIN_BONE_LENGTH = 1e-6

# Tolerance for bind-pose consistency checks
BIND_POSE_TOLERANCE = 1e-5

# Guard for zero-length scale columns during decomposition
SCALE_EPSILON = 1e-12

# Debugging source is placed this far from the imitation source
DEBUG_MIRROR_OFFSET = (1.0, 0.0, 0.0)

# Suffix appended to the debugging source clone name
DEBUGGING_SOURCE_SUFFIX = "(DebuggingImitationSource)"

# Path separator for joint paths and hierarchy paths
PATH_SEPARATOR = "/"
