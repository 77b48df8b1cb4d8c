POLARS_SIZE_THRESHOLD_MB = 200

DEFAULT_SAMPLE_LIMIT = 100
DEFAULT_MAX_GROUPS = 10

LOW_DUPLICATES_RATIO = 0.001
MEDIUM_DUPLICATES_RATIO = 0.01

KEY_CANDIDATE_UNIQUENESS = 1.0

GROUP_SIZE_COLUMN = "__dupprof_group_size"
