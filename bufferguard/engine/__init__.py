"""Buffer Engine - Classification, planning, placement and cleanup

Components:
    conferencing.py: Conferencing link detection
    classifier.py: Event classification into Decisions with reason codes
    planner.py: Pre/post buffer windows and titles
    conflicts.py: Policy-filtered strict-overlap conflict check
    placement.py: Idempotent buffer creation per event
    reconciler.py: Orphaned buffer detection
    runner.py: Buffer pass, cleanup pass and classify-only entry points
"""
