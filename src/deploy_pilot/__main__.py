"""Allow ``python -m deploy_pilot`` invocation.

Delegates to the CLI error-boundary entry point so that
``python -m deploy_pilot`` behaves identically to the ``deploy-pilot``
console script.
"""

from __future__ import annotations

from deploy_pilot.cli.app import cli

if __name__ == "__main__":
    cli()
