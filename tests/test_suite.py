"""
Mortgage Simulator Test Suite

This module provides a unified test suite that runs all simulator tests
in dependency order using unittest's standard `load_tests` protocol.

Test Execution Order:
1. Data model and calendar tests (test_models)
2. Annuity math tests (test_payments)
3. Rate matching and repeating cycles (test_rates)
4. Self-build phase tests (test_self_build)
5. Overpayment policy engine tests (test_overpayments)
6. Amortization simulator tests (test_simulation)
7. APRC tests (test_aprc)
8. Fees and breakeven tests (test_breakeven)

Usage:
    # Run all tests in order (recommended)
    python -m unittest tests.test_suite

    # Or use unittest discovery
    python -m unittest discover -s tests -t . -p test_*.py -v

    # Or run an individual module
    python -m unittest tests.test_simulation

Version: 0.1.0
Last Updated: 2026-10-18
"""

import unittest
import sys


# =============================================================================
# Test Suite Definition (using unittest's load_tests protocol)
# =============================================================================

def load_tests(loader, standard_tests, pattern):
    """
    Custom test loader using unittest's standard `load_tests` protocol.

    Modules are loaded in the order above, lowest layer first, so a failure
    in the annuity math shows up before the simulator tests that rely on it.
    Tests within each module still run in alphabetical order.

    setUpModule() is called while the suite is built, since load_tests
    bypasses the runner's module fixtures for shared scenario data.

    Args:
        loader: TestLoader instance
        standard_tests: Tests that would be loaded by default discovery
        pattern: Pattern used to match test files (ignored here)

    Returns:
        unittest.TestSuite containing all simulator tests in order
    """
    test_modules = [
        'tests.test_models',
        'tests.test_payments',
        'tests.test_rates',
        'tests.test_self_build',
        'tests.test_overpayments',
        'tests.test_simulation',
        'tests.test_aprc',
        'tests.test_breakeven',
    ]

    suite = unittest.TestSuite()

    for module_name in test_modules:
        try:
            module = __import__(module_name, fromlist=[''])

            if hasattr(module, 'setUpModule'):
                try:
                    module.setUpModule()
                except Exception as e:
                    print(f"WARNING: setUpModule() failed for {module_name}: {e}",
                          file=sys.stderr)

            suite.addTest(loader.loadTestsFromModule(module))
        except ImportError as e:
            print(f"WARNING: Failed to import test module {module_name}: {e}",
                  file=sys.stderr)
        except Exception as e:
            print(f"WARNING: Error loading test module {module_name}: {e}",
                  file=sys.stderr)

    return suite


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == '__main__':
    unittest.main(verbosity=2)
