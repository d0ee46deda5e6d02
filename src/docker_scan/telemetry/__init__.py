"""Telemetry for docker-scan.

- system: Operational logger (stderr, optional JSONL file)
"""
