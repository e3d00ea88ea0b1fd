"""Image generation adapter package.

Scope:
    Provides the text-to-image HTTP client and the synthesis stage used by
    core orchestration.

Non-goals:
    - No image post-processing or format conversion.
    - No caching of generated images.
"""
