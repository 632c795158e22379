"""
Wedding planner: budget, tasks, inspiration gallery and dashboard.

Each view is a thin view-model over one backend table, driven by an explicit
SessionProvider. The package also ships a FastAPI app exposing those views.
"""
