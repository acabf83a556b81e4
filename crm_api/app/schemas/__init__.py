"""
Pydantic schema definitions for API payloads.

Each domain (accounts, customers, service visits, time entries)
defines its own response models.  Schemas are separated from the
database rows so the API representation never exposes storage-only
columns such as the password credential.
"""
