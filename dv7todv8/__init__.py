"""
DV7toDV8 converts Dolby Vision Profile 7 MKV files into Profile 8.1.

The conversion itself is delegated to external tools (mkvextract, dovi_tool and
mkvmerge); this package discovers and classifies the files, sequences the tool
invocations and keeps track of what was converted during a run.
"""

__version__ = "1.0.0"
