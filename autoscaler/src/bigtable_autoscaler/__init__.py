"""
Bigtable Autoscaler - resizes a Cloud Bigtable cluster to keep CPU load in band
"""

__version__ = "1.0.0"
