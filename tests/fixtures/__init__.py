"""In-memory adapters and helpers shared by the test suite."""
