"""solrdock: incremental build, test and publish pipeline for the Solr Docker image.

Packages a pre-built Solr distribution into a Docker build context, builds
and tags the image, runs the shell test cases against it and pushes it to a
registry. Each step declares its inputs and outputs and is skipped when
nothing changed since its last successful run.
"""

__version__ = "0.2.0"
__description__ = "Incremental build, test and publish pipeline for the Solr Docker image"

from solrdock.core.executor import TaskExecutor
from solrdock.cli.app import app as cli

__all__ = ["TaskExecutor", "cli", "__version__"]
