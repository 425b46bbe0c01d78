"""
adappeal - Google Ads policy auto-appeal engine

Scans enabled ads for policy topics, appeals eligible topics at most once
per ad/topic pair, and reports what was done.
"""

__version__ = "0.1.0"
