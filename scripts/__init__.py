import subprocess
import shutil
import os
import sys

def run_unit_tests():
    """Run unit tests in sqlstitch/tests."""
    print("Running unit tests...")
    result = subprocess.run([sys.executable, "-m", "pytest", "sqlstitch/tests"], check=False)
    sys.exit(result.returncode)

def run_integration_tests():
    """Run integration tests in tests/ against the PostgreSQL server at DATABASE_URL."""
    print("Running integration tests...")
    # Tests skip themselves when the server is unreachable
    result = subprocess.run([sys.executable, "-m", "pytest", "tests", "-rs"], check=False)
    sys.exit(result.returncode)

def run_all_tests():
    """Run all tests (unit + integration)."""
    print("Running all tests...")
    result = subprocess.run([sys.executable, "-m", "pytest"], check=False)
    sys.exit(result.returncode)

def clean_project():
    """Remove build leftovers like __pycache__, .pytest_cache and egg-info folders."""
    folders_to_remove = [
        ".pytest_cache",
        "build",
        "sqlstitch.egg-info",
    ]

    for root, dirs, files in os.walk("."):
        if "__pycache__" in dirs:
            folders_to_remove.append(os.path.join(root, "__pycache__"))

    print("Cleaning up project...")
    for folder in set(folders_to_remove):
        if os.path.exists(folder):
            try:
                shutil.rmtree(folder)
                print(f"Removed: {folder}")
            except OSError as e:
                print(f"Failed to remove {folder}: {e}")

    print("Cleanup complete.")
