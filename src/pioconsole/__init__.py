"""pioconsole - async orchestration core for a PlatformIO build and serial console."""

__version__ = "0.1.0"
