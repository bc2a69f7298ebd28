"""
Compile command implementation.

Provisions the reproto compiler and runs it over the configured targets.
"""

import logging

from reprotokit.cli.utils import (
    create_provisioner,
    load_project_config,
    provisioning_overrides,
)
from reprotokit.runner.command import ReprotoCommand

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the compile command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)

    Raises:
        ProcessFailedError: If the compiler exits with a non-zero status
    """
    overrides = provisioning_overrides(args)
    overrides.update(
        {
            "targets": args.targets,
            "modules": args.modules,
            "paths": args.paths,
            "output": args.out,
            "package_prefix": args.package_prefix,
            "debug": args.debug,
            "timeout": args.timeout,
        }
    )

    config = load_project_config(args, overrides)

    if config.skip:
        logger.info("Skipping reproto compilation (skip: true)")
        return 0

    executable = create_provisioner(config).provision()

    command = ReprotoCommand(
        executable=executable,
        out=config.output,
        paths=config.paths,
        modules=config.modules,
        targets=config.targets,
        package_prefix=config.package_prefix,
        language=config.language,
        debug=config.debug,
    )
    command.execute(timeout=config.timeout)

    logger.info(f"Generated sources in {config.output}")
    return 0
