"""
Utilities Package for DV7toDV8.

This package contains helper modules that support the services without being
specific to any one stage of the conversion.

Modules:
    - cmd_utils.py: Runs external commands with logging and captured output.
    - tools.py: Locates and verifies the external tools (dovi_tool, mkvextract,
      mkvmerge, mediainfo) before a run starts.
    - format_utils.py: Formats file sizes and table cells for display.
"""
