# marks package; keep empty to avoid circular imports
from __future__ import annotations

__all__: list[str] = [
	"config",
	"deps",
	"logging_setup",
	"main",
	"policy",
]
__version__ = "0.1.0"
