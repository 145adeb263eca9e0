"""
Constants and configuration for the computer-use agent.

Centralized location for:
- Provider and model defaults
- Sampling loop limits
- Tool timing and size limits
"""

from typing import Dict

# =============================================================================
# PROVIDERS & MODELS
# =============================================================================

PROVIDER_ANTHROPIC = "anthropic"
PROVIDER_BEDROCK = "bedrock"
PROVIDER_VERTEX = "vertex"
PROVIDER_GROQ = "groq"
PROVIDER_MOCK = "mock"

PROVIDER_TO_DEFAULT_MODEL_NAME: Dict[str, str] = {
    PROVIDER_ANTHROPIC: "claude-3-5-sonnet-20241022",
    PROVIDER_BEDROCK: "anthropic.claude-3-5-sonnet-20241022-v2:0",
    PROVIDER_VERTEX: "claude-3-5-sonnet-v2@20241022",
    PROVIDER_GROQ: "llama-3.3-70b-versatile",
    PROVIDER_MOCK: "mock",
}

# Beta flag required for the Anthropic-defined computer/editor/bash tools
COMPUTER_USE_BETA_FLAG = "computer-use-2024-10-22"


# =============================================================================
# SAMPLING LOOP
# =============================================================================

MAX_OUTPUT_TOKENS = 4096

# Old images are dropped in batches of this size so the prompt prefix
# changes rarely
IMAGE_REMOVAL_BATCH = 10


# =============================================================================
# COMPUTER TOOL
# =============================================================================

TYPING_DELAY_MS = 12
TYPING_GROUP_SIZE = 50
SCREENSHOT_DELAY_S = 2.0
SCREENSHOT_RETRY_COUNT = 3
SCREENSHOT_RETRY_DELAY_S = 0.5
MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5MB

# (quality, max width) tried in order when the PNG is too large
JPEG_COMPRESSION_STEPS = [
    ("initial", 90, 1920),
    ("medium", 80, 1600),
    ("high", 70, 1280),
    ("extreme", 60, 1024),
]

# API-side resolutions the screen is scaled down to
MAX_SCALING_TARGETS: Dict[str, Dict[str, int]] = {
    "XGA": {"width": 1024, "height": 768},    # 4:3
    "WXGA": {"width": 1280, "height": 800},   # 16:10
    "FWXGA": {"width": 1366, "height": 768},  # ~16:9
}


# =============================================================================
# EDITOR & BASH TOOLS
# =============================================================================

SNIPPET_LINES = 4
MAX_RESPONSE_LENGTH = 16000
TRUNCATED_MESSAGE = (
    "<response clipped><NOTE>To save on context only part of this file has been "
    "shown to you. You should retry this tool after you have searched inside the "
    "file with `grep -n` in order to find the line numbers of what you are looking for.</NOTE>"
)

BASH_TIMEOUT_S = 120.0
