"""Instruction templates for the text-generation stages.

This module is intentionally narrow: it only builds instruction strings from
already validated inputs. Validation, timeouts and model invocation happen in
the stage modules.

Design constraints:
    - Deterministic construction for identical inputs.
    - No hidden side effects (no I/O, no global state mutation).

Prompt safety model:
    - User text is interpolated as a raw quoted string.
    - Output limits (length, grid size) are stated in the instruction and
      enforced again client-side by the calling stage.
"""

ENHANCED_PROMPT_MAX_CHARS = 400
ASCII_ART_MAX_LINES = 15
ASCII_ART_MAX_COLUMNS = 40


# =========================================================
# PROMPT ENHANCEMENT
# =========================================================
# Used by `PromptEnhancer`. The model must answer with the prompt text only.

def build_enhancement_prompt(original_prompt: str, style: str) -> str:
    """Build the instruction that rewrites a user prompt for image generation.

    Args:
        original_prompt: Non-blank user prompt.
        style: Style hint (for example `realistic`, `cartoon`).

    Returns:
        Instruction text for one text-generation call.
    """
    return (
        "You are an expert at creating detailed, high-quality prompts for AI image generation.\n\n"
        f'Your task is to enhance this user prompt: "{original_prompt.strip()}"\n\n'
        f"Style preference: {style}\n\n"
        "Please enhance this prompt by:\n"
        "1. Adding specific visual details (lighting, composition, colors)\n"
        "2. Including artistic style information\n"
        "3. Specifying image quality descriptors\n"
        "4. Making it more descriptive while keeping the core intent\n"
        "5. Ensuring it's suitable for image generation APIs\n\n"
        f"Keep the enhanced prompt under {ENHANCED_PROMPT_MAX_CHARS} characters "
        "and make it natural and flowing.\n\n"
        "Return ONLY the enhanced prompt text, nothing else:"
    )


def build_fallback_prompt(original_prompt: str, style: str) -> str:
    """Deterministic local enhancement used when the model call fails."""
    return f"{original_prompt}, high quality, detailed, {style} style, professional photography"


# =========================================================
# ASCII ART FALLBACK
# =========================================================
# Two independent instructions: a character-grid rendering and a short
# vivid caption of the image that could not be produced.

def build_ascii_art_prompt(prompt: str) -> str:
    subject = prompt.strip()
    return (
        "You are an ASCII art generator. Create simple, recognizable ASCII art "
        f'based on this prompt: "{subject}"\n\n'
        "Guidelines:\n"
        "1. Keep it simple and recognizable\n"
        "2. Use basic ASCII characters (letters, numbers, symbols)\n"
        f"3. Maximum {ASCII_ART_MAX_LINES} lines tall and {ASCII_ART_MAX_COLUMNS} characters wide\n"
        "4. Make it clean and readable in monospace font\n"
        "5. Focus on the main subject of the prompt\n\n"
        f"Create ASCII art that represents: {subject}\n\n"
        "Return only the ASCII art, no explanations or extra text:"
    )


def build_description_prompt(prompt: str) -> str:
    return (
        "Create a vivid, detailed description of what an image would look like "
        f'for this prompt: "{prompt.strip()}"\n\n'
        "Include:\n"
        "- Main subjects and objects\n"
        "- Colors and lighting\n"
        "- Composition and style\n"
        "- Mood and atmosphere\n"
        "- Artistic details\n\n"
        "Keep it engaging and imaginative, about 2-3 sentences:"
    )
