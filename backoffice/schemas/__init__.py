"""
POS Back Office - Schemas Package

Pydantic schemas for request/response validation. Request bodies derive from
``TenantInput`` so a client can never choose the company it writes into.
"""
