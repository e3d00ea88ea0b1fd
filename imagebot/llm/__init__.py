"""LLM access package.

Architectural role:
    Provides provider configuration, the blocking text-generation transport and
    the timeout-bounded async adapter used by the text stages.

Module split:
    - `provider_config`: environment-driven provider, model and endpoint configuration.
    - `service`: async `generate_text` wrapper with timeout enforcement.
    - `client`: provider-specific HTTP transport and response parsing.
"""
