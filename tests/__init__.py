"""
docscan - Test Suite

Test modules mirror the package layout:
- tests/docscan/: Unit tests for config, processing, model, aligner, bridge
- tests/docscan/test_service.py: HTTP endpoints through FastAPI's TestClient
- tests/docscan/test_cli.py: Command line entry point
"""
