"""deploy-pilot — plan, review and deploy through GitHub Actions.

Triggers CI workflows with the ``gh`` CLI, waits for them to finish, and
merges the deployment pull requests they produce.
"""

from deploy_pilot.version import __version__

__all__: list[str] = ["__version__"]
