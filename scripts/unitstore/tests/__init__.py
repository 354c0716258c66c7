"""Test suite for unit storage backends.

This package contains tests for the unit model, the record codec, every built-in
backend, configuration handling, and the conformance suite itself.
"""
