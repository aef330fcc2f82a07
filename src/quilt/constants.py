
# ============================================================================
# CANVAS
# ============================================================================
CANVAS_SIZE = 1000          # seed tile spans CANVAS_SIZE x CANVAS_SIZE units
DEFAULT_COLOR = "#f7b733"   # color of the seed tile
ANONYMOUS_CONTRIBUTOR = "anonymous"

# Smallest allowed tile extent in either dimension.
MIN_TILE_SIZE = 40


# ============================================================================
# PHASES & COLOR MATCHING
# ============================================================================
# Submission count that freezes the key pattern.
FREEZE_THRESHOLD = 20
# Maximum Euclidean RGB distance for two colors to count as similar.
SIMILARITY_THRESHOLD = 35


# ============================================================================
# SPLITTING
# ============================================================================
SPLIT_RATIO_MIN = 0.30
SPLIT_RATIO_MAX = 0.70
# Chance of cutting across the longer edge when both directions are valid.
PREFERRED_DIRECTION_WEIGHT = 0.8


# ============================================================================
# BORDER GROWTH
# ============================================================================
BORDER_MAX_THICKNESS = 40
BORDER_THICKNESS_FRACTION = 0.1   # of the shorter canvas side


# ============================================================================
# INVARIANT REPAIR
# ============================================================================
COVERAGE_REPAIR_RATIO = 0.99   # below this coverage the gap filler runs
EDGE_TOLERANCE = 0.1           # edges closer than this are treated as touching
GEOMETRY_EPSILON = 1e-6        # overlaps/deficits smaller than this are drift


# ============================================================================
# VIEWER
# ============================================================================
WINDOW_WIDTH = 800
WINDOW_HEIGHT = 800
WINDOW_MARGIN = 40
BACKGROUND_COLOR = (246, 244, 241)   # #f6f4f1
TILE_WOBBLE = 6.0                    # max jitter applied to drawn corners
HIGHLIGHT_OUTLINE_WIDTH = 3
PICKER_SATURATION = 90
PICKER_LIGHTNESS = 67
