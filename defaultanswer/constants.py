"""Application-wide constants.

This module centralizes all magic numbers and policy thresholds
to ensure a single source of truth and easier maintenance.

The readiness and fix-plan thresholds are hand-tuned product decisions.
Change them deliberately, never as a side effect of a bug fix.
"""

# =============================================================================
# Fetch Configuration
# =============================================================================

# User agent sent with every analysis fetch
ANALYSIS_USER_AGENT = "DefaultAnswer/1.0 (LLM Recommendation Analysis)"

# Timeout for the primary (homepage) fetch (seconds)
DEFAULT_FETCH_TIMEOUT_SECONDS = 10.0

# Timeout for secondary pages during a multi-page scan (seconds)
PAGE_FETCH_TIMEOUT_SECONDS = 5.0

# Maximum pages evaluated in a multi-page scan, homepage included
MAX_SCAN_PAGES = 10

# HTTP statuses that mean the host answered but refused us
BLOCKING_HTTP_STATUSES = frozenset({403, 429})

# =============================================================================
# Snapshot Quality
# =============================================================================

# Below this many bytes the snapshot is considered thin
THIN_BYTES_THRESHOLD = 20_000

# Below this many visible characters the snapshot is considered thin
THIN_TEXT_THRESHOLD = 8_000

# Body text shorter than this, with a JS framework root, means client rendering
EMPTY_BODY_TEXT_THRESHOLD = 400

# =============================================================================
# Signal Extraction
# =============================================================================

# Definition sentences are only looked for in the top of the visible text
TOP_TEXT_WINDOW_CHARS = 2500

# "@context" and "schema.org" must appear within this many chars of each other
SCHEMA_CONTEXT_WINDOW_CHARS = 2500

# Maximum indirect FAQ links recorded as evidence
MAX_INDIRECT_FAQ_LINKS = 5

# Evidence snippet lengths (chars)
EVIDENCE_TITLE_CHARS = 140
EVIDENCE_META_CHARS = 200
EVIDENCE_H1_CHARS = 160
EVIDENCE_H2_CHARS = 120
EVIDENCE_H2_COUNT = 8
EVIDENCE_SCHEMA_SAMPLE_CHARS = 400
EVIDENCE_SNIPPET_CHARS = 160

# Phone-like strings need at least this many digits
MIN_PHONE_DIGITS = 10

# =============================================================================
# Scoring & Readiness Policy
# =============================================================================

# Total points available across all checks
MAX_SCORE = 100

# A check scoring below this fraction of its max is a weakness / fix candidate
WEAKNESS_RATIO = 0.7

# Sentinel scores for analyses that could not be scored
FAILED_ANALYSIS_SCORE = -1
SNAPSHOT_INCOMPLETE_SCORE = -2

# Score at or above which a site can be a "Strong Default Candidate"
STRONG_SCORE_THRESHOLD = 75

# Negative reasoning bullets tolerated for a "Strong Default Candidate"
STRONG_MAX_NEGATIVE_BULLETS = 1

# Scores below this are "Not a Default Candidate"
EMERGING_SCORE_FLOOR = 50

# Reasoning output mix
MAX_NEGATIVE_REASONING = 3
MAX_POSITIVE_REASONING = 2

# =============================================================================
# Check Labels
# =============================================================================

# Breakdown labels; fix plans and belief signals key off these
TITLE_LABEL = "Title includes brand/entity"
META_LABEL = "Meta description present"
H1_QUALITY_LABEL = "H1 describes product/category"
H1_PRESENT_LABEL = "H1 heading present"
H2_LABEL = "Multiple H2 headings"
HEADINGS_LABEL = "Headings are descriptive"
FAQ_LABEL = "FAQ section present"
SCHEMA_LABEL = "Schema.org markup"
ABOUT_LABEL = "About page linked"
CONTACT_LABEL = "Contact info present"
PRICING_LABEL = "Pricing/plans visible"

# =============================================================================
# Fix Plan Policy
# =============================================================================

# Maximum candidate fixes produced per analysis
MAX_FIX_PLAN_ITEMS = 7

# At or above this score an FAQ top fix needs several answerability gaps
FAQ_GATE_SCORE = 75

# Number of answerability gaps required to keep FAQ as top fix when gated
FAQ_GATE_MIN_GAPS = 2

# At or above this score strong sites get the retrieval-optimization downgrade
RETRIEVAL_OPTIMIZATION_SCORE = 82

# Tag applied to downgraded FAQ actions
RETRIEVAL_OPTIMIZATION_TAG = "[Retrieval Optimization]"

# Action text for the only fix that matters when a page cannot be fetched
ACCESS_FIX_ACTION = (
    "Ensure your site is publicly accessible and not blocking automated requests."
)

# =============================================================================
# Scan Deltas
# =============================================================================

# Minimum absolute score change that earns its own chip
SCORE_CHIP_THRESHOLD = 5

# Maximum chips shown for one delta
MAX_DELTA_CHIPS = 3

# Maximum breakdown rows reported in a scan diff
MAX_BREAKDOWN_CHANGES = 5

# Default number of recent scans returned from history
DEFAULT_RECENT_SCANS_LIMIT = 10

# =============================================================================
# Belief State
# =============================================================================

# Key prefix for belief records in key-value stores
BELIEF_KEY_PREFIX = "defaultanswer:belief:"

# Maximum supporting signals / blocking factors kept per belief
MAX_BELIEF_FACTORS = 5

# Reasoning interpretations are compacted to this many characters
COMPACT_SENTENCE_CHARS = 180

# =============================================================================
# Sweep Extraction
# =============================================================================

# Ranked lists are read up to this many items
MAX_LIST_ITEMS = 5

# Maximum alternatives kept per response
MAX_ALTERNATIVES = 4

# Bounds used to accept a string as a product name
MIN_NAME_CHARS = 2
MAX_NAME_CHARS = 80
MAX_NAME_WORDS = 6

# Confidence bonuses
CONFIDENCE_RANK_ONE = 60
CONFIDENCE_TOP_THREE = 40
CONFIDENCE_MENTIONED = 20
CONFIDENCE_WINNER = 10

# Learning extraction caps
MAX_LEARNING_DOMAINS = 10
MAX_LEARNING_BRANDS = 10
MAX_CATEGORY_LABEL_CHARS = 80

# =============================================================================
# Sweep Runner
# =============================================================================

# Default language models per provider
DEFAULT_OPENAI_MODEL = "gateway/openai:gpt-4o-mini"
DEFAULT_ANTHROPIC_MODEL = "gateway/anthropic:claude-3-5-sonnet-latest"

# Timeout for one language model call (seconds)
SWEEP_CALL_TIMEOUT_SECONDS = 60.0

# Default subject of a sweep
DEFAULT_SWEEP_BRAND = "DefaultAnswer"
DEFAULT_SWEEP_DOMAIN = "defaultanswer.com"
DEFAULT_SWEEP_CATEGORY = "LLM recommendation readiness audit for websites/brands"
