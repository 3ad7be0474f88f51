from .atomic import require_input, require_new_output, staged_output
from .export import export_ppm

__all__ = [
    "export_ppm",
    "require_input",
    "require_new_output",
    "staged_output",
]
