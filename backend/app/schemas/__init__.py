"""API Schemas — Pydantic request/response models for the counter endpoints."""
