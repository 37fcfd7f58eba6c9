"""Numerical core: binarization, axis detection, calibration and tracing."""
