"""
Backend package for the phone identity API.

This package provides a FastAPI application that proxies Supabase's REST
interface for phone identities, generation quotas and industry categories,
with in-memory stores for local runs and tests.
"""
