"""Benchmark suite for hyperlayout kernels, the ball tree and the layout engine.

Run benchmarks:
    pytest benchmarks/ --benchmark-only

Save baseline:
    pytest benchmarks/ --benchmark-only --benchmark-save=baseline

Compare to baseline:
    pytest benchmarks/ --benchmark-only --benchmark-compare=baseline

Generate reports:
    pytest benchmarks/ --benchmark-only --benchmark-histogram
"""
