"""
Basic tests for vSphere Reconciler

Tests package metadata, imports and the exception hierarchy.

Author: uldyssian-sh
License: MIT
"""

import sys
import os
import unittest

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))


class TestBasicFunctionality(unittest.TestCase):
    """Test basic functionality"""

    def test_package_import(self):
        """Test that the main package imports successfully"""
        try:
            import vsphere_reconciler
        except ImportError as e:
            self.fail(f"Failed to import vsphere_reconciler: {e}")

    def test_version_exists(self):
        """Test that version is defined"""
        import vsphere_reconciler
        self.assertIsInstance(vsphere_reconciler.__version__, str)
        self.assertEqual(vsphere_reconciler.get_version(), vsphere_reconciler.__version__)

    def test_author_exists(self):
        """Test that author is defined"""
        import vsphere_reconciler
        self.assertEqual(vsphere_reconciler.__author__, 'uldyssian-sh')

    def test_core_imports(self):
        """Test that core modules import successfully"""
        try:
            from vsphere_reconciler.core import connect, inventory, schema, tasks, translator
            from vsphere_reconciler import client, provider, resources
        except ImportError as e:
            self.fail(f"Failed to import core modules: {e}")


class TestExceptions(unittest.TestCase):
    """Test the exception hierarchy"""

    def test_all_errors_share_a_base(self):
        from vsphere_reconciler import exceptions

        for name in ("ConfigurationError", "VSphereConnectionError", "ValidationError",
                     "NotFoundError", "AmbiguousMatchError", "PathMismatchError",
                     "RemoteOperationError", "UnverifiedCertificateError"):
            self.assertTrue(issubclass(getattr(exceptions, name), exceptions.ReconcilerError))

    def test_ambiguous_match_keeps_paths(self):
        from vsphere_reconciler.exceptions import AmbiguousMatchError

        error = AmbiguousMatchError("two matches", ["/dc1", "/dc2"])
        self.assertEqual(error.paths, ["/dc1", "/dc2"])
        self.assertEqual(str(error), "two matches")

    def test_path_mismatch_keeps_both_paths(self):
        from vsphere_reconciler.exceptions import PathMismatchError

        error = PathMismatchError("mismatch", "/dc1/host/X/esx1", "/dc1/host/Y/esx1")
        self.assertEqual(error.found_path, "/dc1/host/X/esx1")
        self.assertEqual(error.expected_path, "/dc1/host/Y/esx1")
        self.assertIsNone(error.obj)

    def test_unverified_certificate_thumbprint(self):
        from types import SimpleNamespace
        from vsphere_reconciler.exceptions import UnverifiedCertificateError

        error = UnverifiedCertificateError("failed", fault=SimpleNamespace(thumbprint="AA:BB"))
        self.assertEqual(error.thumbprint, "AA:BB")
        self.assertIsNone(UnverifiedCertificateError("failed").thumbprint)


if __name__ == '__main__':
    unittest.main()
