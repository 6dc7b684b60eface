"""
Configuration Package for DV7toDV8.

This package centralizes the static configuration settings for the application:

- Common settings like the project layout, the bundled tools directory, the
  location of the persisted settings file and the logging format.
- Dolby Vision specific settings: external tool names, the naming scheme for
  intermediate files, the enhancement layer size heuristic and the dovi_tool
  edit configurations shipped as JSON files in the `dovi` directory.
"""
