"""Kernels of the slides family, resolved by name in slidesctl."""
