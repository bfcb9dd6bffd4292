"""Core data model, verification and install orchestration."""
