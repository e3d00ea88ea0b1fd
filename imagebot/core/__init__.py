"""Core orchestration package.

Architectural role:
    Exposes the fallback-chain orchestrator that sits between API/CLI
    entrypoints and the pipeline stages (prompt enhancement, image synthesis,
    ASCII-art fallback, reply delivery).

Composition:
    - `engine`: State machine driving one request from START to DONE.
    - `envelope`: Inbound chat update parsing into a `Request`.
    - `results`: Immutable request/result records and tool-contract payloads.
    - `errors`: Error taxonomy and prompt validation.

Determinism and side effects:
    Package import itself is deterministic and side-effect free. Runtime side effects
    are performed by `engine` during request processing.
"""
