"""Gym attendance & streak engine.

This package is organized by feature modules (attendance, streaks, gyms)
with a thin Flask controller layer over service/repository layers.
"""
