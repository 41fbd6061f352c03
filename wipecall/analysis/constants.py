"""Thresholds and labels shared by the analysis pipelines."""

# Wipe-call detection: K deaths within a window, past a fraction of the fight
WIPE_DEATH_THRESHOLD = 5
WIPE_TIME_WINDOW = 10.0  # seconds
WIPE_MIN_FIGHT_FRACTION = 0.5

UNKNOWN_DAMAGE = "Unknown damage"

PLAYER_ACTOR_TYPE = "Player"
NON_PLAYER_TABLE_TYPES = frozenset({"Pet", "NPC"})

CRITICAL_DEATHS_PER_ATTEMPT = 3
FIRST_DEATHS_LIMIT = 20
DEADLY_COMBO_MIN_COUNT = 2
DEADLY_COMBOS_LIMIT = 15
MOST_DEADLY_ABILITIES_LIMIT = 10

# (label, lower bound in seconds); each bucket ends where the next begins
PHASE_BUCKETS: tuple[tuple[str, float], ...] = (
    ("0-30s", 0),
    ("30s-1min", 30),
    ("1-2min", 60),
    ("2-3min", 120),
    ("3-5min", 180),
    ("5min+", 300),
)
