"""Pydantic schemas for API payloads and typed entity views."""
