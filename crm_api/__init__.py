"""
Top-level package for the Service CRM API.

All functionality lives in submodules under ``app``; import the
application as ``crm_api.app.main:app``.
"""

__all__ = []
