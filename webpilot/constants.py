"""WebPilot constants."""

# Action executor retry policy.
ACTION_RETRY_LIMIT = 2
ACTION_RETRY_BASE_DELAY_S = 0.3

# Loop / blocker detection thresholds.
ACTION_REPEAT_LIMIT = 4
URL_STABILITY_LIMIT = 6
SCROLL_REPEAT_LIMIT = 3
LOOP_WARNING_WINDOW = 3

# Prompt + signature windows.
PROMPT_HISTORY_WINDOW = 5
SIGNATURE_MAX_ARGS = 8

# Run budget and pacing.
DEFAULT_MAX_STEPS = 15
STEP_DELAY_S = 0.5

# Every provider sees the same viewport; coordinates are exchanged on a 0-1000 grid.
VIEWPORT_WIDTH = 1440
VIEWPORT_HEIGHT = 900
COORDINATE_GRID = 1000

CHECKPOINT_VERSION = 1
CHECKPOINT_FILE_NAME = "computer-use-checkpoint.json"
DEFAULT_APP_DATA_DIR = "~/.webpilot"

DEFAULT_GOOGLE_COMPUTER_USE_MODEL = "gemini-2.5-computer-use-preview-10-2025"
DEFAULT_OPENAI_COMPUTER_USE_MODEL = "computer-use-preview"
DEFAULT_ANTHROPIC_COMPUTER_USE_MODEL = "claude-sonnet-4-5"

GOOGLE_API_URL = "https://generativelanguage.googleapis.com"
OPENAI_API_URL = "https://api.openai.com"
ANTHROPIC_API_URL = "https://api.anthropic.com"
PROVIDER_TIMEOUT_S = 120.0
