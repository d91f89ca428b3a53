#!/usr/bin/env python3
"""
Run All COOM Tests - runs each test module of the co-occurrence suite in sequence
1. Vocabulary index
2. Sparse accumulator
3. Windowed counter
4. Corpus aggregation
5. SQLite store
6. Token store
7. CLI builder
"""

import json
import subprocess
import sys
import time
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent.parent
SUITE_DIR = PROJECT_ROOT / "lab" / "cooccurrence"

TESTS = [
    ("vocabulary_test.py", "Vocabulary index"),
    ("accumulator_test.py", "Sparse accumulator"),
    ("window_counter_test.py", "Windowed counter"),
    ("aggregator_test.py", "Corpus aggregation"),
    ("coom_store_test.py", "SQLite store"),
    ("data_loader_test.py", "Token store"),
    ("coom_builder_test.py", "CLI builder"),
]

def run_test(script_name: str, description: str) -> bool:
    """
    Run one test module under pytest and return success status.
    """
    print(f"\n{'='*60}")
    print(f"Running: {description}")
    print(f"Module: {script_name}")
    print(f"{'='*60}")

    script_path = SUITE_DIR / script_name
    if not script_path.exists():
        print(f"ERROR: Test module not found: {script_path}")
        return False

    start_time = time.time()
    try:
        result = subprocess.run(
            [sys.executable, "-m", "pytest", "-q", str(script_path)],
            cwd=str(PROJECT_ROOT),
            capture_output=True,
            text=True,
            timeout=300  # 5 minute timeout per module
        )
    except subprocess.TimeoutExpired:
        print(f"TIMEOUT: {description} timed out after 5 minutes")
        return False
    duration = time.time() - start_time

    if result.returncode == 0:
        print(f"SUCCESS: {description} completed in {duration:.1f}s")
        print(result.stdout[-1000:])  # Last 1000 characters
        return True
    print(f"FAILED: {description} failed after {duration:.1f}s")
    print(f"Return code: {result.returncode}")
    print(result.stdout[-2000:])
    if result.stderr:
        print("Error output:")
        print(result.stderr[-1000:])
    return False

def generate_summary_report(results: dict) -> None:
    """Print and save a summary of all module results."""
    print(f"\n{'='*60}")
    print("COOM TEST SUITE SUMMARY")
    print(f"{'='*60}")

    total_tests = len(results)
    passed_tests = sum(1 for success in results.values() if success)

    print(f"Total Modules: {total_tests}")
    print(f"Passed: {passed_tests}")
    print(f"Failed: {total_tests - passed_tests}")

    print("\nResults:")
    for test_name, success in results.items():
        status = "PASS" if success else "FAIL"
        print(f"  {test_name}: {status}")

    summary = {
        'timestamp': time.strftime('%Y-%m-%d %H:%M:%S'),
        'total_tests': total_tests,
        'passed_tests': passed_tests,
        'results': results
    }
    summary_path = SUITE_DIR / "test_suite_summary.json"
    with summary_path.open('w', encoding='utf-8') as f:
        json.dump(summary, f, indent=2)
    print(f"\nSummary saved to: {summary_path}")

def main() -> int:
    print("COOM Test Suite")
    results = {}
    for script_name, description in TESTS:
        results[description] = run_test(script_name, description)
    generate_summary_report(results)
    return 0 if all(results.values()) else 1

if __name__ == "__main__":
    sys.exit(main())
