"""
Converts one Dolby Vision Profile 7 MKV into Profile 8.1.

The conversion is a fixed sequence of external tool invocations. For a source
`name.mkv`:

 1. mkvextract demuxes the video track into `name.BL_EL_RPU.hevc`.
 2. dovi_tool demuxes the enhancement layer and RPU into `name.DV7.EL_RPU.hevc`,
    archived so the Profile 7 stream can be rebuilt later.
 3. If that enhancement layer is small, the source was Profile 8-like and its
    original RPU is archived as `name.RPU.bin` and plotted to `name.L1_plot.png`.
    This step may fail without stopping the run.
 4. dovi_tool converts the stream to `name.DV8.BL_RPU.hevc` using the edit
    configuration for the chosen metadata version, discarding the EL.
 5. `name.BL_EL_RPU.hevc` is deleted unless working files are kept.
 6. dovi_tool extracts the converted RPU into `name.DV8.RPU.bin`.
 7. dovi_tool plots its L1 metadata to `name.DV8.L1_plot.png`.
 8. mkvmerge remuxes the converted stream with the source's audio and subtitle
    tracks (optionally filtered by language) into `name.DV8.mkv`.
 9. `name.DV8.RPU.bin` and `name.DV8.BL_RPU.hevc` are deleted unless working
    files are kept.
10. The job succeeds once `name.DV8.mkv` exists and holds a video stream.

Every other step fails the job when its tool exits nonzero or its output file
is missing, raising `StageFailedException`. There are no retries.
"""
from pathlib import Path
from typing import Callable, Iterable, List, Optional

import ffmpeg
from loguru import logger

from ..config.dovi import EL_SIZE_THRESHOLD, REMUX_TRACK_ORDER, SOURCE_VIDEO_TRACK
from ..domain.exceptions import StageFailedException
from ..domain.job import ConversionJob
from ..domain.media import count_video_streams
from ..domain.settings import EffectiveSettings
from ..utils.cmd_utils import format_cmd, run_cmd
from ..utils.format_utils import formatted_size
from ..utils.tools import ToolPaths
from .logging_service import ErrorLog

STAGE_EXTRACT_BASE_ENHANCEMENT = "Extract-BaseEnhancement"
STAGE_ARCHIVE_ENHANCEMENT_LAYER = "Archive-EnhancementLayer"
STAGE_ARCHIVE_ORIGINAL_RPU = "Archive-OriginalRPU"
STAGE_CONVERT = "Convert"
STAGE_EXTRACT_FINAL_RPU = "Extract-FinalRPU"
STAGE_PLOT_FINAL_METADATA = "Plot-FinalMetadata"
STAGE_REMUX = "Remux"
STAGE_MARK_SUCCEEDED = "Mark-Succeeded"

# Keeps error reports readable when a tool dumps a long progress log on failure.
STDERR_TAIL_LINES = 20


def _tail(text: Optional[str], lines: int = STDERR_TAIL_LINES) -> str:
    if not text:
        return ""
    return "\n".join(text.strip().splitlines()[-lines:])


class DoviConverter:
    """
    Runs the conversion stages for one source file at a time.

    Args:
        settings: The effective settings of the run.
        tools: The resolved tool commands.
        run: The command runner; must behave like `run_cmd`.
        error_log: Where stage failures are reported besides the console. Defaults
                   to the error log in the target directory.
        video_stream_counter: Counts the video streams of the remuxed output,
                              returning `None` when it cannot inspect it.
    """

    def __init__(
        self,
        settings: EffectiveSettings,
        tools: ToolPaths,
        run: Callable = run_cmd,
        error_log: Optional[ErrorLog] = None,
        video_stream_counter: Callable[[Path], Optional[int]] = count_video_streams,
    ):
        self.settings = settings
        self.tools = tools
        self.run = run
        self.error_log = error_log or ErrorLog(settings.target_directory)
        self.video_stream_counter = video_stream_counter

    # --- Stage helpers ---

    def _run_stage(self, stage: str, job: ConversionJob, cmd: List[str], expected_output: Path):
        """Runs one mandatory stage and checks that it produced `expected_output`."""
        display_cmd = format_cmd(cmd)
        result = self.run(cmd)
        if result is None:
            raise StageFailedException(stage, job.source_file, f"could not execute '{cmd[0]}'", command=display_cmd)
        if result.returncode != 0:
            # mkvmerge and mkvextract exit with 1 on warnings alone and print them to stdout.
            tool_output = result.stderr or result.stdout
            if tool_output:
                logger.warning(f"{Path(cmd[0]).name} output:\n{_tail(tool_output)}")
            raise StageFailedException(
                stage,
                job.source_file,
                f"'{Path(cmd[0]).name}' exited with status {result.returncode}",
                command=display_cmd,
                stderr=tool_output,
            )
        if not expected_output.is_file():
            raise StageFailedException(
                stage,
                job.source_file,
                f"expected output '{expected_output.name}' was not created",
                command=display_cmd,
                stderr=result.stderr,
            )

    def _run_optional(self, cmd: List[str], expected_output: Path) -> bool:
        result = self.run(cmd)
        return result is not None and result.returncode == 0 and expected_output.is_file()

    @staticmethod
    def _delete(paths: Iterable[Path]):
        for path in paths:
            if not path.exists():
                continue
            try:
                path.unlink()
                logger.debug(f"Deleted working file '{path.name}'.")
            except OSError as e:
                logger.warning(f"Could not delete working file '{path.name}': {e}")

    # --- Stages ---

    def extract_base_enhancement(self, job: ConversionJob):
        logger.info("Demuxing BL+EL+RPU HEVC from MKV...")
        if not job.source_file.is_file():
            raise StageFailedException(STAGE_EXTRACT_BASE_ENHANCEMENT, job.source_file, "source file no longer exists")
        cmd = [
            self.tools.mkvextract,
            str(job.source_file),
            "tracks",
            f"{SOURCE_VIDEO_TRACK}:{job.artifacts.bl_el_rpu}",
        ]
        self._run_stage(STAGE_EXTRACT_BASE_ENHANCEMENT, job, cmd, job.artifacts.bl_el_rpu)

    def archive_enhancement_layer(self, job: ConversionJob):
        logger.info("Demuxing DV7 EL+RPU HEVC for you to archive for future use...")
        cmd = [
            self.tools.dovi_tool,
            "demux",
            "--el-only",
            str(job.artifacts.bl_el_rpu),
            "-e",
            str(job.artifacts.dv7_el_rpu),
        ]
        self._run_stage(STAGE_ARCHIVE_ENHANCEMENT_LAYER, job, cmd, job.artifacts.dv7_el_rpu)

    def archive_original_rpu(self, job: ConversionJob) -> bool:
        """
        Archives and plots the original RPU when the enhancement layer is small.

        Returns:
            True if the RPU and its plot were archived, False if the step was not
            needed or failed. A failure is logged and never raised.
        """
        el_size = job.artifacts.dv7_el_rpu.stat().st_size
        if el_size >= EL_SIZE_THRESHOLD:
            logger.debug(f"EL+RPU is {formatted_size(el_size)}; a genuine Profile 7 enhancement layer.")
            return False

        logger.info(f"EL+RPU is only {formatted_size(el_size)}; extracting original RPU for you to archive for future use...")
        extract_cmd = [
            self.tools.dovi_tool,
            "extract-rpu",
            str(job.artifacts.bl_el_rpu),
            "-o",
            str(job.artifacts.original_rpu),
        ]
        if not self._run_optional(extract_cmd, job.artifacts.original_rpu):
            logger.warning(f"{STAGE_ARCHIVE_ORIGINAL_RPU}: could not extract the original RPU of '{job.source_file.name}'. Continuing.")
            return False

        plot_cmd = [
            self.tools.dovi_tool,
            "plot",
            str(job.artifacts.original_rpu),
            "-o",
            str(job.artifacts.original_l1_plot),
        ]
        if not self._run_optional(plot_cmd, job.artifacts.original_l1_plot):
            logger.warning(f"{STAGE_ARCHIVE_ORIGINAL_RPU}: could not plot the original RPU of '{job.source_file.name}'. Continuing.")
            return False
        return True

    def convert_to_profile8(self, job: ConversionJob):
        policy = self.settings.metadata_version_policy
        logger.info(f"Converting BL+EL+RPU to DV8 BL+RPU ({policy.value})...")
        cmd = [
            self.tools.dovi_tool,
            "--edit-config",
            str(policy.config_path),
            "convert",
            "--discard",
            str(job.artifacts.bl_el_rpu),
            "-o",
            str(job.artifacts.dv8_bl_rpu),
        ]
        self._run_stage(STAGE_CONVERT, job, cmd, job.artifacts.dv8_bl_rpu)

    def extract_final_rpu(self, job: ConversionJob):
        logger.info("Extracting DV8 RPU...")
        cmd = [
            self.tools.dovi_tool,
            "extract-rpu",
            str(job.artifacts.dv8_bl_rpu),
            "-o",
            str(job.artifacts.dv8_rpu),
        ]
        self._run_stage(STAGE_EXTRACT_FINAL_RPU, job, cmd, job.artifacts.dv8_rpu)

    def plot_final_metadata(self, job: ConversionJob):
        logger.info("Plotting L1...")
        cmd = [
            self.tools.dovi_tool,
            "plot",
            str(job.artifacts.dv8_rpu),
            "-o",
            str(job.artifacts.dv8_l1_plot),
        ]
        self._run_stage(STAGE_PLOT_FINAL_METADATA, job, cmd, job.artifacts.dv8_l1_plot)

    def build_remux_cmd(self, job: ConversionJob) -> List[str]:
        """
        Builds the mkvmerge command for the final container.

        The source's video track is dropped (`-D`) and the converted stream is
        placed first (`--track-order 1:0`). With a language filter, only audio and
        subtitle tracks in those languages are carried over.
        """
        cmd = [self.tools.mkvmerge, "-o", str(job.artifacts.output), "-D"]
        if not self.settings.keep_all_languages:
            languages = ",".join(self.settings.language_codes)
            cmd += ["-a", languages, "-s", languages]
        cmd += [str(job.source_file), str(job.artifacts.dv8_bl_rpu), "--track-order", REMUX_TRACK_ORDER]
        return cmd

    def remux(self, job: ConversionJob):
        logger.info("Remuxing DV8 MKV...")
        if self.settings.keep_all_languages:
            logger.info("Remuxing all audio and subtitle tracks...")
        else:
            logger.info(f"Remuxing audio and subtitle languages: '{','.join(self.settings.language_codes)}'...")
        self._run_stage(STAGE_REMUX, job, self.build_remux_cmd(job), job.artifacts.output)

    def mark_succeeded(self, job: ConversionJob):
        output = job.artifacts.output
        if not output.is_file():
            raise StageFailedException(STAGE_MARK_SUCCEEDED, job.source_file, f"'{output.name}' does not exist")
        try:
            video_streams = self.video_stream_counter(output)
        except ffmpeg.Error as e:
            stderr = e.stderr.decode("utf-8", errors="replace") if isinstance(e.stderr, bytes) else e.stderr
            raise StageFailedException(
                STAGE_MARK_SUCCEEDED, job.source_file, f"'{output.name}' could not be read", stderr=stderr
            ) from e
        if video_streams == 0:
            raise StageFailedException(STAGE_MARK_SUCCEEDED, job.source_file, f"'{output.name}' has no video track")
        job.mark_succeeded()

    # --- Orchestration ---

    def convert(self, source: Path) -> ConversionJob:
        """
        Runs every stage for `source`.

        Returns:
            The succeeded job.

        Raises:
            StageFailedException: When a mandatory stage fails. The job is marked
                failed and the failure is written to the error log first.
        """
        job = ConversionJob(source_file=source)
        logger.info(f"Converting '{source.name}'...")
        try:
            self.extract_base_enhancement(job)
            self.archive_enhancement_layer(job)
            self.archive_original_rpu(job)
            self.convert_to_profile8(job)

            if self.settings.keep_working_files:
                logger.debug("Keeping BL+EL+RPU HEVC.")
            else:
                logger.info("Deleting BL+EL+RPU HEVC...")
                self._delete([job.artifacts.bl_el_rpu])

            self.extract_final_rpu(job)
            self.plot_final_metadata(job)
            self.remux(job)

            if not self.settings.keep_working_files:
                logger.info("Cleaning up working files...")
                self._delete([job.artifacts.dv8_rpu, job.artifacts.dv8_bl_rpu])

            self.mark_succeeded(job)
        except StageFailedException as e:
            job.mark_failed(e.stage)
            self._report_failure(e)
            raise

        logger.success(f"Converted '{source.name}' -> '{job.output_file.name}'.")
        return job

    def _report_failure(self, error: StageFailedException):
        messages = [f"Stage: {error.stage}", f"Source: {error.source}", f"Error: {error.detail}"]
        if error.command:
            messages.append(f"Command: {error.command}")
        stderr_tail = _tail(error.stderr)
        if stderr_tail:
            messages.append(f"Tool output:\n{stderr_tail}")
        self.error_log.write(*messages)
