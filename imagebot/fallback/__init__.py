"""Text-art fallback package.

Scope:
    Produces an ASCII-art rendering plus a short caption when image synthesis
    fails, so every request still receives a deliverable reply.
"""
