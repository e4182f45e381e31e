"""Leave Planner — single-day leave workflow with project conflict hints."""
