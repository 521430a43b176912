# githost Test Suite
# This package contains all tests organized by type:
# - unit/: Fast, isolated tests for individual functions/classes
# - integration/: Tests for API endpoints through the ASGI app
# - e2e/: A real server driven by the git command line client
