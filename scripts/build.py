"""
Script to build the OSM country relation index and metadata files
"""

import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, ingestion, etc.
sys.path.append(os.getcwd())

from core.exceptions import BuildException
from core.logging import setup_logging
from ingestion.runner import BuildRunner

logger = logging.getLogger(__name__)


async def run_build() -> int:
    """Run the full build, return the process exit code"""
    runner = BuildRunner()

    try:
        result = await runner.run()
    except BuildException as e:
        logger.error(str(e))
        return 1

    logger.info(f"Relations written to {result['relations_file']}")
    logger.info(f"Metadata written to {result['metadata_file']}")
    return 0


if __name__ == "__main__":
    setup_logging()
    sys.exit(asyncio.run(run_build()))
