"""CLI package for managing houses through the monitor's HTTP API."""
