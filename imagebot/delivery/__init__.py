"""Reply delivery package.

Module split:
    - `dispatcher`: transport-agnostic dispatch and `DeliveryOutcome` recording.
    - `telegram`: Telegram Bot API transport and a log-only transport.
"""
