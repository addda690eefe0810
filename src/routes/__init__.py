"""
API Routes Package
==================
Shared route utilities for insights_api.py.

Modules:
  helpers  - pipeline construction, request mapping, JSON coercion
"""
