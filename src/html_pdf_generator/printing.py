"""Print handoff to CUPS through the ``lp`` command."""

import asyncio
import logging
import tempfile
from pathlib import Path

from .attributes import PrintAttributes
from .engine import DocumentExporter, ExportHandle, PrintService

logger = logging.getLogger(__name__)


class PrintJobError(RuntimeError):
    """The print command rejected the job."""


class LpPrintService(PrintService):
    """Exports the fresh handle to a temporary PDF and submits it with ``lp``."""

    def __init__(self, exporter: DocumentExporter, printer: str | None = None, command: str = "lp"):
        self.exporter = exporter
        self.printer = printer
        self.command = command

    def build_command(self, name: str, pdf_path: Path) -> list[str]:
        args = [self.command, "-t", name]
        if self.printer:
            args += ["-d", self.printer]
        args.append(str(pdf_path))
        return args

    async def print(self, name: str, handle: ExportHandle, attributes: PrintAttributes) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            pdf_path = await self.exporter.export(handle, attributes, Path(temp_dir), name)
            args = self.build_command(name, pdf_path)
            logger.debug(f"Submitting print job: {' '.join(args)}")

            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await process.communicate()
            if process.returncode != 0:
                raise PrintJobError(
                    f"{self.command} exited with {process.returncode}: {stderr.decode(errors='replace').strip()}"
                )
            logger.info(f"Print job submitted for {name}: {stdout.decode(errors='replace').strip()}")
