"""Use cases — check, plan and explain a workspace."""
