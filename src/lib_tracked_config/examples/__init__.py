"""Runnable walkthrough for ``lib_tracked_config``."""

from .demo import DemoConfig, run_demo, write_demo_files

__all__ = [
    "DemoConfig",
    "run_demo",
    "write_demo_files",
]
