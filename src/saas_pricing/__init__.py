"""
SaaS Pricing Package

Pricing and unit-economics calculator for subscription businesses.
Maps a handful of business inputs to derived SaaS metrics, a three-tier
pricing recommendation, a 12-month projection and advisory insights.
"""

__version__ = "2.0.0"
