"""ksdiff - compare jsonnet app manifests across local and remote environments.

Resolves environment locators into a comparison mode, expands the app's
templates per environment, and diffs the result against live clusters.
"""

from ksdiff.version import __version__

__all__: list[str] = ["__version__"]
