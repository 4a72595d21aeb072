"""FocusOS：番茄钟计时引擎与专注统计。"""

from .cli import main

__version__ = "0.1.0"

__all__ = ["main", "__version__"]
