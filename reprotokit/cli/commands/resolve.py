"""
Resolve command implementation.

Provisions the reproto compiler without running it and prints its path.
"""

import logging

from reprotokit.cli.utils import (
    create_provisioner,
    load_project_config,
    provisioning_overrides,
)

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the resolve command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    config = load_project_config(
        args, provisioning_overrides(args), require_compile=False
    )

    executable = create_provisioner(config).provision()
    print(executable)

    return 0
