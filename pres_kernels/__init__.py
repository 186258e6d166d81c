"""
Presentation Kernels

Kernel infrastructure for compiling structured documents into slide decks:
- Kernels do deterministic computation
- Produce structured output + a short human-readable summary
- Fully traceable and reproducible (input hash, persisted JSON output)

Kernel families:
    slides: pandoc JSON AST -> <pres-slide> HTML, theme JSON -> CSS
"""

__version__ = "0.1.0"

__all__ = [
    "Kernel",
    "KernelInput",
    "KernelOutput",
]


def __getattr__(name):
    """Lazy imports to keep `import pres_kernels` cheap."""
    if name in ("Kernel", "KernelInput", "KernelOutput"):
        from pres_kernels.base import Kernel, KernelInput, KernelOutput
        return locals()[name]
    raise AttributeError(f"module 'pres_kernels' has no attribute '{name}'")
