"""
Log search: query, permalink and bulk indexing layers over Elasticsearch
for security logs.
"""

__version__ = "0.1.0"
