"""Upload ./datasources/<name> into the cloud index pipeline of the same name.

Usage: python generate_datasource.py <datasource> [options]
"""

from ingestion.cli import main as _cli_main
from ingestion.environment import EnvironmentManager
from ingestion.orchestrator import generate_datasource

__all__ = ["generate_datasource", "create_context", "main"]


def main() -> int:
    """Compatibility wrapper that delegates to `ingestion.cli.main`."""
    return _cli_main()


def create_context(**options):
    """Build a run context from the environment, for scripted use."""
    env = EnvironmentManager()
    env.apply()
    return env.initialize(**options)


if __name__ == "__main__":
    raise SystemExit(main())
