"""Centralized constants for affordance collection and action execution."""

# DOM attribute that carries each affordance's persistent identity
IDENTITY_ATTR = "data-pagehand-id"

# Collection bounds
DEFAULT_MAX_AFFORDANCES = 400
TEXT_TRUNCATE = 140
HASH_TEXT_TRUNCATE = 64

# Attributes copied verbatim onto an affordance (empty values dropped)
ALLOWED_ATTRS = (
    "id",
    "name",
    "type",
    "placeholder",
    "value",
    "data-testid",
    "aria-label",
)

# Simulated typing cadence (ms between characters); not configurable per call
TYPING_DELAY_MS = 50

# Timeouts
DEFAULT_WAIT_TIMEOUT_MS = 5000

# Default viewport
DEFAULT_VIEWPORT = (1280, 720)

# Structured intent confidence thresholds
INTENT_HIGH_SCORE = 50
INTENT_MEDIUM_SCORE = 30

# Selector match confidence thresholds
MATCH_HIGH_SCORE = 80
MATCH_MEDIUM_SCORE = 40
