"""
This package contains the core domain models of DV7toDV8.

Modules:
    exceptions.py: Custom exception types for usage errors, pre-flight failures
                   and pipeline stage failures.
    settings.py: The settings layers (`PartialSettings`) and the resolved,
                 immutable `EffectiveSettings` for one run.
    media.py: `MediaFile`, the classification of one MKV file, the Dolby Vision
              profile enum and the deterministic naming of derived files.
    job.py: `ConversionJob`, the state of one file going through the pipeline.
"""
