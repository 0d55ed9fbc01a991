"""Shared API constants."""

# Tag on the opening fence of an assistant profile-update block: ```json:profile_update
PROFILE_UPDATE_FENCE_TAG = "json:profile_update"

# SSE framing used by OpenAI-compatible streaming backends
SSE_DATA_PREFIX = "data: "
SSE_DONE_SENTINEL = "[DONE]"

# Id prefixes for items synthesized by the preview materializer
PROMPT_ID_PREFIX = "prompt"
FACT_ID_PREFIX = "fact"

# Shown when a coach turn fails at the transport level
COACH_ERROR_REPLY = "Sorry, I encountered an error. Please try again!"

# Shown when the coach's update block cannot be used
FORMATTING_ISSUE_TITLE = "Formatting Issue"
FORMATTING_ISSUE_MESSAGE = (
    "The coach tried to suggest changes, but there was a formatting issue. "
    "You can ask them to try again or rephrase your request."
)
