"""Ad rewards engine package.

Watch-session lifecycle, eligibility / rate limiting, completion verification
and the append-only view ledger, plus a thin FastAPI surface in ``adrewards.api``.
"""

__all__: list[str] = []
