"""
Benchmark harness for containerised hello-world web servers.

This package starts each server image under fixed resource limits, drives it
with wrk, locust or a cold-start timing loop, and writes the normalised
latency and throughput measurements as CSV tables.
"""

from .main import main

__all__ = ["main"]
