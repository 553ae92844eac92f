"""
Feed batches of files to the mysql client and keep each result in a .txt file.
"""

import logging
import os
import re
import subprocess
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from .errors import OutputError
from .models import BatchJob, ConnectionSettings, JobResult, OverwritePolicy, ResultCode

CommandBuilder = Callable[[BatchJob, str], list[list[str]]]


def derive_output_path(
    input_path: Union[str, Path],
    extension: str = '.sql',
    output_dir: Optional[Union[str, Path]] = None
) -> Path:
    """
    Replace the input's extension (case-insensitive) with '.txt'.

    If the input does not end with the extension, '.txt' is appended.
    """
    input_path = Path(input_path)
    name = re.sub(re.escape(extension) + r'$', '.txt', input_path.name, flags=re.IGNORECASE)
    if name == input_path.name:
        name += '.txt'
    parent = Path(output_dir) if output_dir is not None else input_path.parent
    return parent / name


def client_command(settings: Optional[ConnectionSettings] = None) -> list[str]:
    """Build the mysql client command line, without the database name."""
    command = ['mysql']
    if settings is None:
        return command
    if settings.host:
        command.append(f'--host={settings.host}')
    if settings.port:
        command.append(f'--port={settings.port}')
    if settings.username:
        command.append(f'--user={settings.username}')
    return command


class BatchRunner:
    """Runs each input file through the mysql client, one at a time."""

    def __init__(
        self,
        database: str,
        overwrite_policy: OverwritePolicy = OverwritePolicy.NEVER,
        output_dir: Optional[Union[str, Path]] = None,
        create_dir: bool = False,
        extension: str = '.sql',
        interpreter: Optional[list[str]] = None,
        settings: Optional[ConnectionSettings] = None,
        command_builder: Optional[CommandBuilder] = None
    ):
        self.database = database
        self.overwrite_policy = overwrite_policy
        self.output_dir = Path(output_dir) if output_dir is not None else None
        self.create_dir = create_dir
        self.extension = extension
        self.interpreter = interpreter
        self.settings = settings
        self.command_builder = command_builder or self.build_commands

    def make_jobs(self, input_paths: Iterable[Union[str, Path]]) -> list[BatchJob]:
        return [
            BatchJob(
                input_path=Path(path),
                output_path=derive_output_path(path, self.extension, self.output_dir),
                interpreter=self.interpreter
            )
            for path in input_paths
        ]

    def run(self, input_paths: Iterable[Union[str, Path]]) -> list[JobResult]:
        """
        Run every input file and return one result per job.

        A failing job is logged and recorded; the remaining jobs still run.

        Raises:
            OutputError: If the output directory is missing and cannot be created.
        """
        jobs = self.make_jobs(input_paths)
        self._prepare_output_dir()

        results = []
        for job in jobs:
            try:
                reason = self._skip_reason(job)
            except OSError as e:
                logging.error(f"Failed checking '{job.input_path}': {e}")
                results.append(JobResult(job=job, status=ResultCode.IO_ERROR, message=str(e)))
                continue
            if reason:
                logging.info(reason)
                results.append(JobResult(job=job, status=ResultCode.OK, skipped=True, message=reason))
                continue
            results.append(self._run_job(job))
        return results

    def _prepare_output_dir(self) -> None:
        if self.output_dir is None or self.output_dir.is_dir():
            return
        if not self.create_dir:
            raise OutputError(f"Output directory '{self.output_dir}' does not exist")
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputError(f"Can't create directory '{self.output_dir}': {e}") from e

    def _skip_reason(self, job: BatchJob) -> Optional[str]:
        """Return why the job should be skipped, or None to run it."""
        if not job.output_path.is_file():
            return None

        if self.overwrite_policy == OverwritePolicy.ALWAYS:
            logging.debug(f"Overwriting existing {job.output_path} ...")
            return None

        if self.overwrite_policy == OverwritePolicy.IF_OLDER:
            if job.output_path.stat().st_mtime < job.input_path.stat().st_mtime:
                logging.debug(
                    f"Overwriting existing {job.output_path} because it is older "
                    f"than the corresponding {job.input_path} ..."
                )
                return None
            return (
                f"{job.output_path} already exists and newer than corresponding "
                f"{job.input_path}, skipped"
            )

        return f"{job.output_path} already exists, we never overwrite existing .txt file, skipped"

    def build_commands(self, job: BatchJob, database: str) -> list[list[str]]:
        """Return the pipeline stages; the last stage is the mysql client."""
        stages = []
        if job.interpreter:
            stages.append(list(job.interpreter) + [str(job.input_path)])
        stages.append(client_command(self.settings) + [database])
        return stages

    def _client_env(self) -> Optional[dict[str, str]]:
        if self.settings is None or self.settings.password is None:
            return None
        env = dict(os.environ)
        env['MYSQL_PWD'] = self.settings.password
        return env

    def _run_job(self, job: BatchJob) -> JobResult:
        logging.info(f"Running '{job.input_path}' and putting result to '{job.output_path}' ...")
        stages = self.command_builder(job, self.database)
        env = self._client_env()

        try:
            with open(job.input_path, 'rb') as source, open(job.output_path, 'wb') as output:
                returncode = self._run_pipeline(stages, source, output, env)
        except OSError as e:
            logging.error(f"Failed running '{job.input_path}': {e}")
            return JobResult(job=job, status=ResultCode.IO_ERROR, message=str(e))

        if returncode != 0:
            message = f"Command for '{job.input_path}' exited with status {returncode}"
            logging.error(message)
            return JobResult(job=job, status=ResultCode.IO_ERROR, returncode=returncode, message=message)

        return JobResult(job=job, status=ResultCode.OK, returncode=returncode, message="OK")

    def _run_pipeline(self, stages: list[list[str]], source, output, env) -> int:
        """Run the stages connected by pipes and return the first non-zero exit status."""
        logging.debug("Command: " + " | ".join(" ".join(stage) for stage in stages))
        processes = []
        stdin = source if len(stages) == 1 else subprocess.DEVNULL
        try:
            for i, stage in enumerate(stages):
                is_last = i == len(stages) - 1
                process = subprocess.Popen(
                    stage,
                    stdin=stdin,
                    stdout=output if is_last else subprocess.PIPE,
                    env=env
                )
                if processes and processes[-1].stdout:
                    processes[-1].stdout.close()
                processes.append(process)
                stdin = process.stdout
        except OSError:
            for process in processes:
                process.kill()
                process.wait()
            raise

        returncodes = [process.wait() for process in processes]
        return next((code for code in returncodes if code != 0), 0)
