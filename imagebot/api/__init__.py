"""imagebot API adapter package.

Architectural role:
- Defines the external interaction boundary for HTTP and CLI interfaces.
- Performs transport-level parsing and response shaping.
- Delegates orchestration to `imagebot.core.engine`.

Scope:
- Request lifecycle control for adapter concerns only.
- No direct model or image-provider invocation is implemented here.
"""
