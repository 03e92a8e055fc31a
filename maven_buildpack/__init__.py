"""Maven Buildpack - build decisions for Maven applications.

This package decides which Maven distribution a Cloud Native Buildpack
invokes (project wrapper, Maven or the Maven daemon), the exact arguments
passed to it, and the layers and bill-of-materials entries the build
contributes.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
