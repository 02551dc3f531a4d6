"""AI-facing services: context building, action handling, and model access."""
