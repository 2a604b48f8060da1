"""BufferGuard Test Suite

Test organization:
- unit/calendar/: Event models and calendar adapters (Google, in-memory, dry-run)
- unit/policies/: Policy schema and YAML loading
- unit/engine/: Classifier, planner, conflicts, placement, reconciler, runner
- unit/test_cli.py: Command line entry point

Running tests:
    # All tests
    pytest

    # Specific area
    pytest tests/unit/engine/

    # With coverage
    pytest --cov=bufferguard --cov-report=term-missing
"""
