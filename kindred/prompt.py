from typing import Optional

DEFAULT_TONE = "Helpful and professional assistant"

writing_assistant = """### SYSTEM INSTRUCTIONS:
You are an expert Writing Assistant. You must follow the user's instructions LITERALLY and COMPLETELY.
- If the user asks for a specific number (e.g., 5 ideas), you MUST provide exactly that number.
- Adhere strictly to the requested tone.
- Do not be brief; provide full, high-quality content.

### TONE/ADDITIONAL CONTEXT:
{tone}

### USER INPUT:
{user_query}"""


def compose(
    user_query: str,
    system_prompt: Optional[str] = None,
    default_tone: str = DEFAULT_TONE,
) -> str:
    """
    Builds the single prompt string sent to the generation API.

    Args:
        user_query: The user's text, inserted as-is.
        system_prompt: Tone or extra context. Blank values fall back to default_tone.
        default_tone: Tone used when system_prompt is missing.
    Returns:
        The preamble, then the tone, then the user text.
    """
    tone = system_prompt if system_prompt and system_prompt.strip() else default_tone
    return writing_assistant.format(tone=tone, user_query=user_query)
