"""Prompt text for file content analysis."""

ANALYSIS_INSTRUCTION = (
    "Analyze this file. Provide a concise summary (max 2 sentences) and a list of 3-5 "
    "relevant tags to help categorize it. Focus on the visual content for images/videos, "
    "audio content for music/audio, or text content for documents."
)


def build_system_prompt() -> str:
    """Return the system prompt for the analyzer."""
    return (
        "You are a careful archivist for a personal file store. "
        "Describe files plainly and choose tags a person would search for."
    )


def build_user_prompt(name: str) -> str:
    """Return the instruction, mentioning the file name when one is known."""
    if name:
        return f"{ANALYSIS_INSTRUCTION} The file is named '{name}'."
    return ANALYSIS_INSTRUCTION
