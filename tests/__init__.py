"""
Test suite for vSphere Reconciler.

Unit tests run against an in-memory inventory that stands in for vCenter.
"""
