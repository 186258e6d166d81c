"""
Kernel Base Classes

A kernel is one deterministic step of the slide build:
- Reads its inputs from paths given in the configuration
- Produces structured output + a short summary
- Persists both under the workspace, with an input hash for traceability

Design Principles:
1. Deterministic: same input files + config = same output
2. Traceable: every run leaves a JSON record in stage{N}/
3. Fail closed: a failed computation never leaves partial output files
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, List
from datetime import datetime
import hashlib
import json
import logging

logger = logging.getLogger(__name__)


@dataclass
class KernelInput:
    """Standard input for any kernel.

    Attributes:
        workspace: Build workspace root directory
        config: Kernel-specific configuration (input paths, options)
    """
    workspace: Path
    config: Dict[str, Any]

    def __post_init__(self):
        """Ensure workspace is a Path object."""
        if isinstance(self.workspace, str):
            self.workspace = Path(self.workspace)


@dataclass
class KernelOutput:
    """Standard output from any kernel.

    Attributes:
        success: Whether execution completed without errors
        data: Full structured data (JSON-serializable)
        summary: Human-readable summary (<500 chars)
        output_file: Path where the JSON record was persisted

    Traceability:
        kernel_name: Name of the kernel that produced this output
        kernel_version: Version of the kernel
        execution_time_ms: Execution time in milliseconds
        input_hash: SHA256 hash of config + input file contents

    Diagnostics:
        warnings: Non-fatal issues encountered
        errors: Errors that caused failure (if success=False)
    """
    success: bool
    data: Dict[str, Any]
    summary: str
    output_file: Path

    # Traceability
    kernel_name: str
    kernel_version: str
    execution_time_ms: int
    input_hash: str

    # Diagnostics
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "success": self.success,
            "summary": self.summary,
            "output_file": str(self.output_file),
            "kernel_name": self.kernel_name,
            "kernel_version": self.kernel_version,
            "execution_time_ms": self.execution_time_ms,
            "input_hash": self.input_hash,
            "warnings": self.warnings,
            "errors": self.errors,
        }


class Kernel(ABC):
    """
    Abstract base class for all presentation kernels.

    Subclasses must implement:
        - compute(): Core computation logic
        - summarize(): Generate human-readable summary

    Subclasses should override:
        - name: Unique kernel identifier
        - version: Semantic version
        - category: Kernel family (slides)
        - stage: Pipeline stage (3 = rendering)
        - input_keys: Config keys holding paths to files that must exist
        - provides: What this kernel produces

    Example:
        class MyKernel(Kernel):
            name = "my_kernel"
            version = "1.0.0"
            category = "slides"
            stage = 3
            input_keys = ["document_path"]
            provides = ["html"]

            def compute(self, input: KernelInput) -> Dict[str, Any]:
                return {"result": ...}

            def summarize(self, data: Dict[str, Any]) -> str:
                return f"Processed {len(data)} items."
    """

    # Overridden by subclasses
    name: str = "base"
    version: str = "1.0.0"
    category: str = "base"
    stage: int = 0
    description: str = "Base kernel"

    input_keys: List[str] = []  # config keys that must name existing files
    provides: List[str] = []

    @abstractmethod
    def compute(self, input: KernelInput) -> Dict[str, Any]:
        """
        Core computation logic. Must be deterministic.

        Args:
            input: KernelInput with workspace and config

        Returns:
            Raw data dictionary (JSON-serializable)
        """
        pass

    @abstractmethod
    def summarize(self, data: Dict[str, Any]) -> str:
        """
        Generate a short human-readable summary (< 500 characters).

        Args:
            data: Output from compute()
        """
        pass

    def validate_input(self, input: KernelInput) -> List[str]:
        """
        Validate input before computation.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not input.workspace.exists():
            errors.append(f"Workspace does not exist: {input.workspace}")

        for key in self.input_keys:
            value = input.config.get(key)
            if not value:
                errors.append(f"Missing required config key: {key}")
            elif not Path(value).is_file():
                errors.append(f"Input file does not exist: {value}")

        return errors

    def output_dir(self, input: KernelInput) -> Path:
        """Directory for the kernel's deliverables (HTML, CSS)."""
        out = input.workspace / "output"
        out.mkdir(parents=True, exist_ok=True)
        return out

    def run(self, input: KernelInput) -> KernelOutput:
        """
        Execute kernel with full traceability.

        Not meant to be overridden; implement compute() and summarize() instead.

        This method:
        1. Validates input
        2. Computes input hash for reproducibility
        3. Runs computation
        4. Generates summary
        5. Persists the JSON record and summary under stage{N}/
        """
        start_time = datetime.now()
        warnings = []
        errors = []
        output_file = input.workspace / f"stage{self.stage}" / f"{self.name}.json"

        validation_errors = self.validate_input(input)
        if validation_errors:
            for err in validation_errors:
                logger.error(f"[{self.name}] Validation error: {err}")
            return KernelOutput(
                success=False,
                data={"validation_errors": validation_errors},
                summary=f"Kernel {self.name} failed validation: {validation_errors[0]}",
                output_file=output_file,
                kernel_name=self.name,
                kernel_version=self.version,
                execution_time_ms=0,
                input_hash="",
                errors=validation_errors,
            )

        input_hash = self._hash_input(input)
        logger.info(f"[{self.name}] Starting computation (input_hash={input_hash[:8]})")

        try:
            data = self.compute(input)
            summary = self.summarize(data)

            if len(summary) > 500:
                summary = summary[:497] + "..."
                warnings.append("Summary truncated to 500 characters")

            success = True
            logger.info(f"[{self.name}] Computation successful")

        except Exception as e:
            logger.error(f"[{self.name}] Computation failed: {e}")
            data = {"error": str(e), "error_type": type(e).__name__}
            summary = f"Kernel {self.name} failed: {str(e)[:100]}"
            success = False
            errors.append(str(e))

        execution_time_ms = int((datetime.now() - start_time).total_seconds() * 1000)

        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_data = {
            "_meta": {
                "kernel_name": self.name,
                "kernel_version": self.version,
                "execution_time_ms": execution_time_ms,
                "input_hash": input_hash,
                "timestamp": datetime.now().isoformat(),
                "success": success,
            },
            "data": data
        }
        output_file.write_text(json.dumps(output_data, indent=2, default=str))
        output_file.with_suffix('.summary.txt').write_text(summary)

        logger.info(f"[{self.name}] Output saved to {output_file} ({execution_time_ms}ms)")

        return KernelOutput(
            success=success,
            data=data,
            summary=summary,
            output_file=output_file,
            kernel_name=self.name,
            kernel_version=self.version,
            execution_time_ms=execution_time_ms,
            input_hash=input_hash,
            warnings=warnings,
            errors=errors,
        )

    def _hash_input(self, input: KernelInput) -> str:
        """SHA256 over kernel id, config, and the bytes of every input file.

        Returns:
            16-character hexadecimal hash prefix
        """
        h = hashlib.sha256()
        h.update(json.dumps({
            "kernel": f"{self.name}@{self.version}",
            "config": input.config,
        }, sort_keys=True, default=str).encode())
        for key in self.input_keys:
            h.update(Path(input.config[key]).read_bytes())
        return h.hexdigest()[:16]

    def __repr__(self) -> str:
        return f"<Kernel {self.name}@{self.version} stage={self.stage}>"
