"""
Integration tests for the submission notifier.

These tests use mocked AWS services (moto) and fake HTTP upstreams to run
the complete submission-created flow end to end.
"""
