"""
Services Package for DV7toDV8.

This package contains the service layer: classes that each carry out one part
of a run and are coordinated by the pipeline.

- **Settings (`SettingsResolver`, `YamlSettingsStore`):** merge the defaults,
  the persisted settings, the settings prompt and the command line into the
  effective settings of the run.

- **Classification (`ProfileClassifier`):** reads the Dolby Vision profile of an
  MKV with mediainfo and checks for converted and archival sibling files.

- **Scanning (`DirectoryScanner`):** classifies every MKV in the target
  directory, shows the result as a table and asks whether to convert.

- **Conversion (`DoviConverter`):** runs the external tool stages that turn one
  Profile 7 MKV into Profile 8.1.

- **Ledger (`RunLedger`):** remembers the converted files and offers to delete
  their originals at the end of the run.

- **Logging (`ErrorLog`):** writes stage failures to a text file in the target
  directory, separate from the console log.
"""
