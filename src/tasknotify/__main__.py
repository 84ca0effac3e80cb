"""Allow running the tasknotify CLI directly: python -m tasknotify"""
from tasknotify.cli.main import cli

if __name__ == "__main__":
    cli()
