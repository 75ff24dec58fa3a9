"""
Shared logging channel for the library
"""

# Third Party
import alog

log = alog.use_channel("GSA")
