import os

from dotenv import load_dotenv

load_dotenv(os.getenv("ENV_FILE"), override=True)

# General
PRODUCT = os.getenv("PRODUCT", "lesson-pipeline")
VERSION = os.environ.get("VERSION", "0")
ENV = os.getenv("ENV", "stg")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")

# LLM
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL") or None
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.7"))
LLM_REQUEST_TIMEOUT = float(os.getenv("LLM_REQUEST_TIMEOUT", "60"))
ENABLE_LANGFUSE = os.getenv("ENABLE_LANGFUSE", "false").lower() in ("1", "true", "yes")

# Output budgets (tokens) for a single adapter call
DEFAULT_OUTPUT_BUDGET = int(os.getenv("DEFAULT_OUTPUT_BUDGET", "1000"))
MIN_OUTPUT_BUDGET = 20
TITLE_OUTPUT_BUDGET = 50
GRAMMAR_OUTPUT_BUDGET = 3000

# Regeneration: one generation plus one narrowed retry
MAX_ATTEMPTS = 2

# Progress event channel capacity
EVENT_QUEUE_SIZE = int(os.getenv("EVENT_QUEUE_SIZE", "32"))

# Structural floor for source documents
MIN_SOURCE_WORDS = 50
MIN_SOURCE_SENTENCES = 3
MIN_SOURCE_QUALITY = 60
SOURCE_EXCERPT_CHARS = 1000

# Fixed section targets
OPENING_QUESTION_COUNT = 3
DISCUSSION_QUESTION_COUNT = 5
COMPREHENSION_QUESTION_COUNT = 5
CLOSING_QUESTION_COUNT = 3
FOLLOW_UP_QUESTION_COUNT = 3
MIN_DIALOGUE_LINES = 12
TARGET_DIALOGUE_LINES = 14
MIN_DIALOGUE_GAPS = 3
MIN_GRAMMAR_EXERCISES = 5
MIN_GRAMMAR_EXAMPLES = 3
MIN_PRONUNCIATION_WORDS = 5
MIN_TONGUE_TWISTERS = 2
MIN_VOCABULARY_INTEGRATION = 2
MAX_VOCABULARY_WORDS = 8
REINFORCED_VOCABULARY_WORDS = 5

# Relative contribution of each section to overall progress.
# Keys are SectionName values; the two dialogue variants share the
# weight of the "dialogue" phase.
DEFAULT_PHASE_WEIGHTS = {
    "warmup": 10.0,
    "vocabulary": 15.0,
    "reading": 20.0,
    "comprehension": 10.0,
    "discussion": 10.0,
    "dialogue_practice": 7.5,
    "dialogue_fill_gap": 7.5,
    "grammar": 15.0,
    "pronunciation": 15.0,
    "wrapup": 5.0,
}

SUPPORT_CONTACT = os.getenv("SUPPORT_CONTACT", "support@example.com")
