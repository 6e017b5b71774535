"""
AI Value Analytics Module

This module turns per-tool AI usage and feedback data into perceived-value
scores, Agentic FTE metrics, incremental ROI comparisons, department
adoption scores and phased license-expansion plans.
"""

__version__ = "1.0.0"
