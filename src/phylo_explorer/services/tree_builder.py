"""Tree builder adapters: alignment text in, Newick text out."""

from __future__ import annotations

import asyncio
import logging
import shutil
from abc import ABC, abstractmethod

from ..core.tree import ID_DELIMITER


logger = logging.getLogger(__name__)

DEFAULT_FASTTREE_TIMEOUT = 300.0  # seconds
FASTTREE_EXECUTABLES = ("FastTree", "fasttree", "FastTreeMP")


class TreeBuildError(RuntimeError):
    """The tree builder could not produce a tree for the alignment."""


def strip_header_fields(alignment: str) -> str:
    """Cut every FASTA header at its first '|'.

    Node ids in the returned tree are then bare accessions. Sequence
    lines are left untouched.
    """
    lines = []
    for line in alignment.splitlines():
        if line.startswith(">"):
            line = line.split(ID_DELIMITER, 1)[0]
        lines.append(line)
    return "\n".join(lines) + ("\n" if lines else "")


class TreeBuilder(ABC):
    """External tree-building collaborator."""

    @abstractmethod
    async def build(self, alignment: str) -> str:
        """Return a Newick tree for FASTA alignment text.

        Raises TreeBuildError with a described reason on failure.
        """
        ...


class FastTreeBuilder(TreeBuilder):
    """Runs the FastTree executable on an aligned FASTA.

    Usage::

        builder = FastTreeBuilder.locate()
        newick = await builder.build(fasta_text)
    """

    def __init__(
        self,
        executable: str,
        nucleotide: bool = True,
        timeout: float = DEFAULT_FASTTREE_TIMEOUT,
    ) -> None:
        self._executable = executable
        self._nucleotide = nucleotide
        self._timeout = timeout

    @classmethod
    def locate(cls, **kwargs) -> FastTreeBuilder:
        """Find a FastTree executable on PATH."""
        for name in FASTTREE_EXECUTABLES:
            path = shutil.which(name)
            if path is not None:
                logger.info("Using FastTree at %s", path)
                return cls(path, **kwargs)
        raise TreeBuildError(
            f"FastTree executable not found on PATH (looked for {list(FASTTREE_EXECUTABLES)}). "
            "Install FastTree to build trees from alignments."
        )

    @property
    def command(self) -> list[str]:
        args = [self._executable, "-quiet"]
        if self._nucleotide:
            args.append("-nt")
        return args

    async def build(self, alignment: str) -> str:
        if not alignment.strip():
            raise TreeBuildError("Alignment is empty.")
        payload = strip_header_fields(alignment).encode("utf-8")

        try:
            proc = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise TreeBuildError(f"Could not start FastTree: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(payload), timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            logger.error("FastTree timed out after %.0fs", self._timeout)
            raise TreeBuildError(
                f"Tree building timed out after {self._timeout:.0f}s."
            ) from None

        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            logger.error("FastTree exited with %d: %s", proc.returncode, message)
            raise TreeBuildError(
                f"FastTree failed (exit code {proc.returncode}): {message or 'no output'}"
            )

        newick = stdout.decode("utf-8", errors="replace").strip()
        if not newick:
            raise TreeBuildError("FastTree produced no tree. Is the input aligned FASTA?")
        return newick
