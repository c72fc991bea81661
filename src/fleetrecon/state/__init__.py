"""State layer.

Pure merge logic that turns the AIS and GPS snapshots into one
deterministic reconciled view.
"""
