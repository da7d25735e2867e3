"""
Test support utilities for batchspine tests.

Collaborator doubles (jobs, launchers, readers, writers) that don't fit as
pytest fixtures but are used across several test files live in
``tests._support.doubles``.
"""
